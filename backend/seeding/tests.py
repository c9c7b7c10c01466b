"""
Test suite for the texture seeding pipeline
Tests: guidance parsing, match context cache, heuristics, AI matching, synthesis,
tiered resolution, pacing, per-style generation and the management commands
"""
import json
from io import StringIO
from types import SimpleNamespace
from unittest import mock

import requests
from django.core.exceptions import ImproperlyConfigured
from django.core.management import CommandError, call_command
from django.test import TestCase, SimpleTestCase, override_settings
from openai import OpenAIError

from backend.catalog.models import MaterialCategory, PriceLevel, StyleTexture, Texture, TextureMaterialCategory
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory
from backend.seeding.ai_client import (
    Created, Linked, TextureMatchClient, TextureProposal, Unclear, create_api_client,
)
from backend.seeding.exceptions import ImageGenerationError, NoMaterialCategoriesError, TextureMatchError
from backend.seeding.heuristics import heuristic_texture_match, similarity_score
from backend.seeding.image_service import TextureImageGenerator
from backend.seeding.match_context import (
    CategoryProjection, MatchContextCache, TextureProjection,
)
from backend.seeding.pacing import FixedIntervalPacer, NoPacing
from backend.seeding.parser import MaterialDescriptor, parse_material_guidance
from backend.seeding.pipeline import StyleTextureGenerator, generate_textures_for_style
from backend.seeding.resolver import Resolution, ResolveOptions, TextureResolver
from backend.seeding.synthesizer import TextureSynthesizer
from backend.seeding.translations import get_material_name_hebrew

SCENARIO_GUIDANCE = "brushed oak paneling, matte wall paint, polished marble flooring"
NINE_MATERIALS = (
    "oak floor, marble counter, velvet sofa, brass fixtures, linen curtains, "
    "concrete wall, walnut table, leather chair, copper lamp"
)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


class FakeReader:
    def __init__(self, textures=None, categories=None):
        self.textures = textures or []
        self.categories = categories or []
        self.texture_reads = 0
        self.category_reads = 0

    def read_textures(self, limit):
        self.texture_reads += 1
        return list(self.textures[:limit])

    def read_categories(self):
        self.category_reads += 1
        return list(self.categories)


def chat_response(content):
    """Shape of an openai chat completion as far as the client reads it"""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def descriptor(name, category_slug='wood-finishes', finish='natural', price_level=PriceLevel.REGULAR):
    return MaterialDescriptor(
        name=name,
        category_slug=category_slug,
        finish=finish,
        keywords=(str(price_level),),
        price_level=str(price_level),
    )


def create_categories(*slugs):
    return [TestDataFactory.create_material_category(slug=slug) for slug in slugs]


def propose_own_name(texture_name, textures, categories, style_context=None, price_level=None):
    """AI stand-in that always asks to create a texture named after the descriptor"""
    return Created(
        proposal=TextureProposal(name_en=texture_name, name_he=get_material_name_hebrew(texture_name)),
        confidence=0.9,
        reasoning='No similar texture exists',
    )


class DescriptorParserTests(SimpleTestCase):
    """Test material guidance parsing"""

    def test_scenario_guidance(self):
        """Test the three materials of a typical guidance text"""
        descriptors = parse_material_guidance(SCENARIO_GUIDANCE, PriceLevel.REGULAR)

        self.assertEqual([d.name for d in descriptors], ['Oak', 'Paint', 'Marble'])
        self.assertEqual(
            [d.category_slug for d in descriptors],
            ['wood-finishes', 'wall-finishes', 'stone-finishes']
        )
        self.assertEqual([d.finish for d in descriptors], ['brushed', 'matte', 'polished'])

    def test_keywords_prefixed_with_price_level(self):
        """Test auxiliary keywords start with the price level and skip consumed terms"""
        descriptors = parse_material_guidance("brushed oak paneling", PriceLevel.LUXURY)

        self.assertEqual(descriptors[0].keywords, ('LUXURY', 'paneling'))
        self.assertEqual(descriptors[0].price_level, 'LUXURY')

    def test_default_finish_is_natural(self):
        """Test a fragment without a finish term gets the natural finish"""
        descriptors = parse_material_guidance("walnut veneer")

        self.assertEqual(descriptors[0].name, 'Walnut')
        self.assertEqual(descriptors[0].finish, 'natural')

    def test_empty_guidance(self):
        """Test empty or blank guidance yields no descriptors"""
        self.assertEqual(parse_material_guidance(''), [])
        self.assertEqual(parse_material_guidance('   \n  '), [])
        self.assertEqual(parse_material_guidance(None), [])

    def test_stop_words_only(self):
        """Test guidance naming no known material yields no descriptors"""
        self.assertEqual(parse_material_guidance("the, and with, some cozy vibes"), [])

    def test_short_fragments_dropped(self):
        """Test fragments shorter than four characters are ignored"""
        descriptors = parse_material_guidance("oak, marble tile")

        self.assertEqual([d.name for d in descriptors], ['Marble'])

    def test_order_and_duplicates_kept(self):
        """Test descriptors follow input order and duplicates are not removed"""
        descriptors = parse_material_guidance("oak floor; velvet sofa\noak paneling")

        self.assertEqual([d.name for d in descriptors], ['Oak', 'Velvet', 'Oak'])

    def test_nine_materials(self):
        """Test every fragment of a long guidance text is parsed"""
        self.assertEqual(len(parse_material_guidance(NINE_MATERIALS)), 9)


class MatchContextCacheTests(SimpleTestCase):
    """Test the TTL cache of texture and category projections"""

    def setUp(self):
        self.clock = FakeClock()
        self.reader = FakeReader(
            textures=[TextureProjection(id=1, name_en='Oak', name_he='אלון')],
            categories=[CategoryProjection(id=1, name_en='Wood Finishes', name_he='גימורי עץ', slug='wood-finishes')],
        )
        self.cache = MatchContextCache(reader=self.reader, clock=self.clock)

    def test_hit_within_ttl(self):
        """Test a second read within the TTL does no I/O"""
        first = self.cache.get_context()
        self.clock.now = 299
        second = self.cache.get_context()

        self.assertIs(first, second)
        self.assertEqual(self.reader.texture_reads, 1)
        self.assertEqual(self.reader.category_reads, 1)

    def test_expiry_reloads(self):
        """Test the snapshot is reloaded once the TTL has passed"""
        self.cache.get_context()
        self.clock.now = 300
        self.cache.get_context()

        self.assertEqual(self.reader.texture_reads, 2)

    def test_invalidate_forces_reload(self):
        """Test invalidate clears the snapshot regardless of remaining TTL"""
        self.cache.get_context()
        self.cache.invalidate()
        self.cache.get_context()

        self.assertEqual(self.reader.texture_reads, 2)

    def test_get_returns_tuple(self):
        """Test get returns textures and categories"""
        textures, categories = self.cache.get()

        self.assertEqual(textures[0].name_en, 'Oak')
        self.assertEqual(categories[0].slug, 'wood-finishes')

    def test_texture_limit_passed_to_reader(self):
        """Test the texture cap bounds the snapshot"""
        self.reader.textures = [TextureProjection(id=i, name_en=f'T{i}', name_he=f'ט{i}') for i in range(5)]
        cache = MatchContextCache(reader=self.reader, clock=self.clock, texture_limit=2)

        self.assertEqual(len(cache.get_context().textures), 2)

    def test_read_failure_propagates(self):
        """Test a failing read is raised, never replaced by an empty context"""
        self.reader.read_textures = mock.Mock(side_effect=RuntimeError('database unavailable'))

        with self.assertRaises(RuntimeError):
            self.cache.get_context()

    def test_visible_textures(self):
        """Test organization scoping of the snapshot"""
        self.reader.textures = [
            TextureProjection(id=1, name_en='Oak', name_he='אלון'),
            TextureProjection(id=2, name_en='Walnut', name_he='אגוז', organization_id=7),
            TextureProjection(id=3, name_en='Teak', name_he='טיק', organization_id=8),
        ]
        context = self.cache.get_context()

        self.assertEqual([t.id for t in context.visible_textures(7)], [1, 2])
        self.assertEqual([t.id for t in context.visible_textures()], [1, 2, 3])


class MatchContextReaderTests(TestCase):
    """Test the catalog-backed context reader"""

    def test_reader_orders_by_usage(self):
        """Test the most used textures come first with their first category"""
        wood = TestDataFactory.create_material_category(slug='wood-finishes')
        TestDataFactory.create_texture(name_en='Pine', usage=1)
        TestDataFactory.create_texture(name_en='Oak', usage=5, category=wood)

        context = MatchContextCache().get_context()

        self.assertEqual([t.name_en for t in context.textures], ['Oak', 'Pine'])
        self.assertEqual(context.textures[0].category_slug, 'wood-finishes')
        self.assertIsNone(context.textures[1].category_slug)
        self.assertEqual([c.slug for c in context.categories], ['wood-finishes'])


class HeuristicTests(SimpleTestCase):
    """Test string similarity between candidate names and textures"""

    def setUp(self):
        self.oak = TextureProjection(id=1, name_en='Oak', name_he='אלון', finish='natural', category_slug='wood-finishes')

    def test_exact_name(self):
        """Test exact English (case-insensitive) and Hebrew names score 1.0"""
        self.assertEqual(similarity_score('oak', self.oak), 1.0)
        self.assertEqual(similarity_score('אלון', self.oak), 1.0)

    def test_contained_name(self):
        """Test a descriptive prefix still matches the base material"""
        self.assertEqual(similarity_score('Brushed Oak', self.oak), 0.9)

    def test_cross_language(self):
        """Test an English candidate whose translation equals the Hebrew name"""
        texture = TextureProjection(id=2, name_en='Quercus', name_he='אלון')

        self.assertEqual(similarity_score('Oak', texture), 0.85)

    def test_shared_word(self):
        """Test a shared word scores below the link threshold"""
        texture = TextureProjection(id=3, name_en='Dark Wood Veneer', name_he='עץ כהה')

        self.assertEqual(similarity_score('Walnut Wood Panel', texture), 0.8)

    def test_unrelated(self):
        """Test unrelated names score zero"""
        self.assertEqual(similarity_score('Marble', self.oak), 0.0)
        self.assertEqual(similarity_score('', self.oak), 0.0)

    def test_finish_bonus(self):
        """Test the same finish nudges the score up"""
        match = heuristic_texture_match('Brushed Oak', [self.oak], finish='natural', category_slug='wood-finishes')

        self.assertEqual(match.texture_id, 1)
        self.assertAlmostEqual(match.confidence, 0.95)

    def test_category_mismatch_penalty(self):
        """Test a texture filed under another category is penalised"""
        match = heuristic_texture_match('Oak', [self.oak], category_slug='stone-finishes')

        self.assertAlmostEqual(match.confidence, 0.9)

    def test_tie_keeps_first(self):
        """Test equal scores keep the earlier (more used) texture"""
        other = TextureProjection(id=9, name_en='Oak', name_he='אלון ב')
        match = heuristic_texture_match('Oak', [self.oak, other], similarity=lambda name, texture: 0.9)

        self.assertEqual(match.texture_id, 1)

    def test_no_match(self):
        """Test no candidate gives an unmatched result"""
        match = heuristic_texture_match('Velvet', [self.oak])

        self.assertFalse(match.matched)
        self.assertEqual(match.confidence, 0.0)


class TextureMatchClientTests(SimpleTestCase):
    """Test the AI semantic-match client and its response validation"""

    def setUp(self):
        self.openai = mock.Mock()
        self.client = TextureMatchClient(self.openai, 'test-model')
        self.textures = [TextureProjection(id=5, name_en='Oak', name_he='אלון', category_slug='wood-finishes')]
        self.categories = [CategoryProjection(id=3, name_en='Wood Finishes', name_he='גימורי עץ', slug='wood-finishes')]

    def respond(self, payload):
        content = payload if isinstance(payload, str) else json.dumps(payload)
        self.openai.chat.completions.create.return_value = chat_response(content)

    def match(self, name='Brushed Oak'):
        return self.client.match(name, self.textures, self.categories, style_context='Japandi', price_level='REGULAR')

    def test_link(self):
        """Test a confident link to a known texture"""
        self.respond({'action': 'link', 'matchedTextureId': 5, 'confidence': 0.92, 'reasoning': 'Same wood'})

        result = self.match()

        self.assertEqual(result, Linked(target_id=5, confidence=0.92, reasoning='Same wood'))
        kwargs = self.openai.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs['model'], 'test-model')
        self.assertEqual(kwargs['temperature'], 0.2)
        self.assertEqual(kwargs['response_format'], {'type': 'json_object'})
        prompt = kwargs['messages'][-1]['content']
        self.assertIn('Brushed Oak', prompt)
        self.assertIn('Japandi', prompt)
        self.assertIn('ID: 5', prompt)

    def test_create(self):
        """Test a create decision carries the proposal"""
        self.respond({
            'action': 'create',
            'confidence': 0.8,
            'newTexture': {
                'name': {'he': 'אלון מוברש', 'en': 'Brushed Oak'},
                'finish': 'brushed',
                'baseColor': 'honey',
                'categoryId': 3,
            },
            'reasoning': 'Distinct finish',
        })

        result = self.match()

        self.assertIsInstance(result, Created)
        self.assertEqual(result.proposal, TextureProposal(
            name_en='Brushed Oak', name_he='אלון מוברש', finish='brushed', base_color='honey', category_id=3,
        ))

    def test_link_to_unknown_id_becomes_create(self):
        """Test a link to an id that was not offered falls back to the proposal"""
        self.respond({
            'action': 'link',
            'matchedTextureId': 999,
            'confidence': 0.95,
            'newTexture': {'name': {'he': 'אלון', 'en': 'Oak'}},
        })

        self.assertIsInstance(self.match(), Created)

    def test_low_confidence_link_without_proposal_is_unclear(self):
        """Test a link below the link threshold with nothing to create"""
        self.respond({'action': 'link', 'matchedTextureId': 5, 'confidence': 0.59})

        self.assertIsInstance(self.match(), Unclear)

    def test_link_at_threshold(self):
        """Test a link exactly at the link threshold is trusted"""
        self.respond({'action': 'link', 'matchedTextureId': 5, 'confidence': 0.6})

        self.assertIsInstance(self.match(), Linked)

    def test_create_with_partial_name_is_unclear(self):
        """Test a proposal missing one language is not usable"""
        self.respond({'action': 'create', 'confidence': 0.7, 'newTexture': {'name': {'en': 'Oak', 'he': ''}}})

        self.assertIsInstance(self.match(), Unclear)

    def test_unknown_category_dropped(self):
        """Test an invented category id is removed from the proposal"""
        self.respond({
            'action': 'create',
            'confidence': 0.7,
            'newTexture': {'name': {'he': 'אלון', 'en': 'Oak'}, 'categoryId': 42},
        })

        result = self.match()

        self.assertIsInstance(result, Created)
        self.assertIsNone(result.proposal.category_id)

    def test_invalid_json(self):
        """Test non-JSON content raises TextureMatchError"""
        self.respond('not json at all')

        with self.assertRaises(TextureMatchError):
            self.match()

    def test_schema_violation(self):
        """Test out-of-range confidence raises TextureMatchError"""
        self.respond({'action': 'link', 'matchedTextureId': 5, 'confidence': 1.5})

        with self.assertRaises(TextureMatchError):
            self.match()

    def test_unknown_action(self):
        """Test an action other than link or create raises TextureMatchError"""
        self.respond({'action': 'merge', 'confidence': 0.9})

        with self.assertRaises(TextureMatchError):
            self.match()

    def test_empty_content(self):
        """Test empty content raises TextureMatchError"""
        self.respond('   ')

        with self.assertRaises(TextureMatchError):
            self.match()

    def test_transport_error(self):
        """Test API errors are wrapped in TextureMatchError"""
        self.openai.chat.completions.create.side_effect = OpenAIError('connection reset')

        with self.assertRaises(TextureMatchError):
            self.match()

    def test_create_api_client_requires_key(self):
        """Test client construction rejects incomplete configuration"""
        with self.assertRaises(ImproperlyConfigured):
            create_api_client({'type': 'openai', 'api_key': ''})
        with self.assertRaises(ImproperlyConfigured):
            create_api_client({'type': 'azure', 'api_key': 'key'})
        with self.assertRaises(ImproperlyConfigured):
            create_api_client({'type': 'bedrock', 'api_key': 'key'})

    @override_settings(TEXTURE_MATCH_API={'type': 'openai', 'model': 'gpt-4.1-mini', 'api_key': ''})
    def test_from_settings_without_key(self):
        """Test no client is built when no API key is configured"""
        self.assertIsNone(TextureMatchClient.from_settings())


class TextureImageGeneratorTests(SimpleTestCase):
    """Test the image-generation service client"""

    def test_disabled_without_url(self):
        """Test no request is made when the service is not configured"""
        session = mock.Mock()
        generator = TextureImageGenerator(url='', session=session)

        self.assertIsNone(generator.generate('Oak', 'אלון'))
        session.post.assert_not_called()

    def test_returns_first_image(self):
        """Test the first image URL is returned and the request is well formed"""
        session = mock.Mock()
        session.post.return_value.json.return_value = {'images': ['https://images.test/oak.png']}
        generator = TextureImageGenerator(url='https://images.test/generate', key='secret', timeout=5, session=session)

        url = generator.generate('Oak', 'אלון', PriceLevel.LUXURY, 'brushed')

        self.assertEqual(url, 'https://images.test/oak.png')
        kwargs = session.post.call_args.kwargs
        self.assertEqual(kwargs['json']['entityType'], 'texture')
        self.assertEqual(kwargs['json']['entityName'], {'he': 'אלון', 'en': 'Oak'})
        self.assertEqual(kwargs['json']['priceLevel'], 'LUXURY')
        self.assertEqual(kwargs['json']['numberOfImages'], 1)
        self.assertEqual(kwargs['headers']['x-functions-key'], 'secret')
        self.assertEqual(kwargs['timeout'], 5)

    def test_no_images(self):
        """Test an empty result is not an error"""
        session = mock.Mock()
        session.post.return_value.json.return_value = {'images': []}
        generator = TextureImageGenerator(url='https://images.test/generate', session=session)

        self.assertIsNone(generator.generate('Oak', 'אלון'))

    def test_request_failure(self):
        """Test transport failures raise ImageGenerationError"""
        session = mock.Mock()
        session.post.side_effect = requests.exceptions.Timeout('too slow')
        generator = TextureImageGenerator(url='https://images.test/generate', session=session)

        with self.assertRaises(ImageGenerationError):
            generator.generate('Oak', 'אלון')


class TextureSynthesizerTests(TestCase):
    """Test texture creation from AI proposals and from descriptors"""

    def setUp(self):
        self.cache = MatchContextCache(clock=lambda: 0.0)
        self.images = mock.Mock()
        self.images.generate.return_value = None
        self.synthesizer = TextureSynthesizer(self.cache, self.images)

    def test_fallback_creates_linked_texture(self):
        """Test the fallback path persists an abstract texture in the descriptor's category"""
        wood, _ = create_categories('wood-finishes', 'stone-finishes')

        result = self.synthesizer.create_fallback(descriptor('Oak', finish='brushed'), PriceLevel.REGULAR)

        texture = Texture.objects.get(pk=result.texture_id)
        self.assertEqual(texture.name_en, 'Oak')
        self.assertEqual(texture.name_he, 'אלון')
        self.assertEqual(texture.finish, 'brushed')
        self.assertTrue(texture.is_abstract)
        self.assertEqual(texture.generation_status, 'COMPLETED')
        self.assertEqual(texture.tags, ['REGULAR'])
        self.assertEqual(texture.usage, 0)
        self.assertEqual(list(texture.categories.all()), [wood])
        self.assertTrue(AuditLog.objects.filter(action='texture_create', object_id=str(texture.id)).exists())

    def test_untranslated_name_passes_through(self):
        """Test a name missing from the translation table is used for both languages"""
        create_categories('stone-finishes')

        result = self.synthesizer.create_fallback(descriptor('Terrazzo', category_slug='stone-finishes'), PriceLevel.REGULAR)

        texture = Texture.objects.get(pk=result.texture_id)
        self.assertEqual(texture.name_he, 'Terrazzo')

    def test_fallback_to_arbitrary_category(self):
        """Test a missing slug files the texture under the first existing category"""
        stone, _ = create_categories('stone-finishes', 'wall-finishes')

        result = self.synthesizer.create_fallback(descriptor('Velvet', category_slug='fabric-textures'), PriceLevel.REGULAR)

        self.assertEqual(list(Texture.objects.get(pk=result.texture_id).categories.all()), [stone])

    def test_no_categories_is_fatal(self):
        """Test synthesis fails when the catalog has no categories at all"""
        with self.assertRaises(NoMaterialCategoriesError):
            self.synthesizer.create_fallback(descriptor('Oak'), PriceLevel.REGULAR)

        self.assertEqual(Texture.objects.count(), 0)

    def test_create_from_ai_uses_proposal(self):
        """Test the AI path uses the proposed names, finish and category"""
        wood, stone = create_categories('wood-finishes', 'stone-finishes')
        proposal = TextureProposal(
            name_en='Smoked Oak', name_he='אלון מעושן', finish='oiled', sheen='satin', base_color='brown',
            category_id=stone.id,
        )

        result = self.synthesizer.create_from_ai(proposal, descriptor('Oak'), PriceLevel.LUXURY, reasoning='Darker tone')

        texture = Texture.objects.get(pk=result.texture_id)
        self.assertEqual((texture.name_en, texture.name_he), ('Smoked Oak', 'אלון מעושן'))
        self.assertEqual((texture.finish, texture.sheen, texture.base_color), ('oiled', 'satin', 'brown'))
        self.assertIn('Darker tone', texture.ai_description)
        self.assertEqual(TextureMaterialCategory.objects.filter(texture=texture).count(), 1)
        self.assertEqual(list(texture.categories.all()), [stone])

    def test_create_from_ai_without_category_uses_descriptor(self):
        """Test a proposal without a category is filed by the descriptor's slug"""
        wood, _ = create_categories('wood-finishes', 'stone-finishes')
        proposal = TextureProposal(name_en='Oak', name_he='אלון')

        result = self.synthesizer.create_from_ai(proposal, descriptor('Oak'), PriceLevel.REGULAR)

        self.assertEqual(list(Texture.objects.get(pk=result.texture_id).categories.all()), [wood])

    def test_image_failure_is_soft(self):
        """Test an image failure still creates the texture, without image"""
        create_categories('wood-finishes')
        self.images.generate.side_effect = ImageGenerationError('service down')

        result = self.synthesizer.create_fallback(descriptor('Oak'), PriceLevel.REGULAR, generate_images=True)

        self.assertFalse(result.image_generated)
        self.assertEqual(Texture.objects.get(pk=result.texture_id).image_url, '')

    def test_image_generated(self):
        """Test a generated image URL is stored"""
        create_categories('wood-finishes')
        self.images.generate.return_value = 'https://images.test/oak.png'

        result = self.synthesizer.create_fallback(descriptor('Oak'), PriceLevel.REGULAR, generate_images=True)

        self.assertTrue(result.image_generated)
        self.assertEqual(Texture.objects.get(pk=result.texture_id).image_url, 'https://images.test/oak.png')

    def test_overlong_image_url_dropped(self):
        """Test an image URL that does not fit the column is dropped, not stored"""
        create_categories('wood-finishes')
        self.images.generate.return_value = 'https://images.test/' + 'a' * 1000

        result = self.synthesizer.create_fallback(descriptor('Oak'), PriceLevel.REGULAR, generate_images=True)

        self.assertFalse(result.image_generated)
        self.assertEqual(Texture.objects.get(pk=result.texture_id).image_url, '')

    def test_images_not_requested_when_disabled(self):
        """Test the image service is not called unless asked"""
        create_categories('wood-finishes')

        self.synthesizer.create_fallback(descriptor('Oak'), PriceLevel.REGULAR)

        self.images.generate.assert_not_called()

    def test_new_texture_visible_after_creation(self):
        """Test the next context read sees the new texture regardless of TTL"""
        create_categories('wood-finishes')
        self.assertEqual(self.cache.get_context().textures, [])

        result = self.synthesizer.create_fallback(descriptor('Oak'), PriceLevel.REGULAR)

        self.assertEqual([t.id for t in self.cache.get_context().textures], [result.texture_id])

    def test_organization_owned(self):
        """Test synthesized textures belong to the scoped organization"""
        create_categories('wood-finishes')
        organization = TestDataFactory.create_organization()

        result = self.synthesizer.create_fallback(descriptor('Oak'), PriceLevel.REGULAR, organization_id=organization.id)

        self.assertEqual(Texture.objects.get(pk=result.texture_id).organization, organization)


class TextureResolverTests(TestCase):
    """Test the exact, heuristic and AI tiers"""

    def setUp(self):
        self.wood = TestDataFactory.create_material_category(slug='wood-finishes')
        self.cache = MatchContextCache()
        self.synthesizer = TextureSynthesizer(self.cache)
        self.match_client = mock.Mock()

    def resolver(self, **kwargs):
        kwargs.setdefault('match_client', self.match_client)
        return TextureResolver(self.cache, self.synthesizer, **kwargs)

    def test_exact_match_skips_ai(self):
        """Test an existing texture with the same name is returned without any AI call"""
        oak = TestDataFactory.create_texture(name_en='Oak', name_he='אלון', category=self.wood)

        resolution = self.resolver().resolve(descriptor('Oak'), PriceLevel.REGULAR)

        self.assertEqual(resolution, Resolution(texture_id=oak.id, tier='exact', confidence=1.0))
        self.match_client.match.assert_not_called()

    def test_exact_match_hebrew(self):
        """Test the candidate may equal the stored Hebrew name"""
        oak = TestDataFactory.create_texture(name_en='Oak Wood', name_he='אלון')

        resolution = self.resolver().resolve(descriptor('אלון'), PriceLevel.REGULAR)

        self.assertEqual(resolution.texture_id, oak.id)
        self.assertEqual(resolution.tier, 'exact')

    def test_exact_match_translated_hebrew(self):
        """Test an English candidate matches a texture whose Hebrew name is its translation"""
        stone = TestDataFactory.create_material_category(slug='stone-finishes')
        rovere = TestDataFactory.create_texture(name_en='Rovere', name_he='אלון', category=stone)
        self.match_client.match.side_effect = TextureMatchError('service unavailable')

        resolution = self.resolver().resolve(descriptor('Oak'), PriceLevel.REGULAR)

        self.assertEqual(resolution, Resolution(texture_id=rovere.id, tier='exact', confidence=1.0))
        self.match_client.match.assert_not_called()
        self.assertEqual(Texture.objects.count(), 1)

    def test_heuristic_threshold_links(self):
        """Test a heuristic score exactly at the threshold links"""
        texture = TestDataFactory.create_texture(name_en='Something', finish='matte')

        resolution = self.resolver(similarity=lambda name, t: 0.85).resolve(descriptor('Oak'), PriceLevel.REGULAR)

        self.assertEqual(resolution.texture_id, texture.id)
        self.assertEqual(resolution.tier, 'heuristic')
        self.match_client.match.assert_not_called()

    def test_heuristic_below_threshold_asks_ai(self):
        """Test a score just below the threshold falls through to the AI tier"""
        texture = TestDataFactory.create_texture(name_en='Something', finish='matte')
        self.match_client.match.return_value = Linked(target_id=texture.id, confidence=0.7)

        resolution = self.resolver(similarity=lambda name, t: 0.84).resolve(descriptor('Oak'), PriceLevel.REGULAR)

        self.assertEqual(resolution.tier, 'semantic')
        self.assertEqual(resolution.texture_id, texture.id)
        self.match_client.match.assert_called_once()

    def test_brushed_oak_matches_oak_heuristically(self):
        """Test a descriptive name reuses the base texture without AI"""
        oak = TestDataFactory.create_texture(name_en='Oak', name_he='אלון טבעי', category=self.wood)

        resolution = self.resolver().resolve(descriptor('Brushed Oak'), PriceLevel.REGULAR)

        self.assertEqual(resolution.texture_id, oak.id)
        self.assertEqual(resolution.tier, 'heuristic')
        self.match_client.match.assert_not_called()

    def test_ai_create(self):
        """Test an AI create decision synthesizes a texture"""
        self.match_client.match.side_effect = propose_own_name

        resolution = self.resolver().resolve(descriptor('Walnut'), PriceLevel.REGULAR)

        self.assertEqual(resolution.tier, 'created')
        self.assertTrue(resolution.created)
        self.assertEqual(Texture.objects.get(pk=resolution.texture_id).name_he, 'אגוז')

    def test_ai_failure_falls_back(self):
        """Test an AI failure degrades to fallback synthesis"""
        self.match_client.match.side_effect = TextureMatchError('timeout')

        resolution = self.resolver().resolve(descriptor('Walnut'), PriceLevel.REGULAR)

        self.assertEqual(resolution.tier, 'fallback')
        self.assertTrue(Texture.objects.filter(pk=resolution.texture_id, name_en='Walnut').exists())

    def test_unclear_falls_back(self):
        """Test an inconclusive AI answer degrades to fallback synthesis"""
        self.match_client.match.return_value = Unclear(reasoning='Could not decide')

        resolution = self.resolver().resolve(descriptor('Walnut'), PriceLevel.REGULAR)

        self.assertEqual(resolution.tier, 'fallback')
        self.assertIn('Could not decide', Texture.objects.get(pk=resolution.texture_id).ai_description)

    def test_without_ai_client(self):
        """Test resolution works with AI matching disabled"""
        resolution = self.resolver(match_client=None).resolve(descriptor('Walnut'), PriceLevel.REGULAR)

        self.assertEqual(resolution.tier, 'fallback')

    def test_ai_receives_context(self):
        """Test the AI tier receives the visible textures, categories and options"""
        pine = TestDataFactory.create_texture(name_en='Pine', name_he='אורן', category=self.wood)
        self.match_client.match.return_value = Linked(target_id=pine.id, confidence=0.8)

        self.resolver().resolve(
            descriptor('Walnut'), PriceLevel.LUXURY, ResolveOptions(style_context='Scandinavian'),
        )

        args, kwargs = self.match_client.match.call_args
        self.assertEqual(args[0], 'Walnut')
        self.assertEqual([t.id for t in args[1]], [pine.id])
        self.assertEqual([c.slug for c in args[2]], ['wood-finishes'])
        self.assertEqual(kwargs['style_context'], 'Scandinavian')
        self.assertEqual(kwargs['price_level'], 'LUXURY')

    def test_other_organization_not_reused(self):
        """Test textures owned by another organization are invisible"""
        org_a = TestDataFactory.create_organization()
        org_b = TestDataFactory.create_organization()
        TestDataFactory.create_texture(name_en='Oak', name_he='אלון', organization=org_a, category=self.wood)

        resolution = self.resolver(match_client=None).resolve(
            descriptor('Oak'), PriceLevel.REGULAR, ResolveOptions(organization_id=org_b.id),
        )

        self.assertTrue(resolution.created)
        self.assertEqual(Texture.objects.get(pk=resolution.texture_id).organization, org_b)

    def test_global_texture_reused_by_organization(self):
        """Test global textures are visible to every organization"""
        oak = TestDataFactory.create_texture(name_en='Oak', name_he='אלון', category=self.wood)
        organization = TestDataFactory.create_organization()

        resolution = self.resolver().resolve(
            descriptor('Oak'), PriceLevel.REGULAR, ResolveOptions(organization_id=organization.id),
        )

        self.assertEqual(resolution.texture_id, oak.id)

    def test_context_failure_propagates(self):
        """Test a context read failure is not swallowed"""
        self.cache.reader = mock.Mock()
        self.cache.reader.read_textures.side_effect = RuntimeError('database unavailable')

        with self.assertRaises(RuntimeError):
            self.resolver().resolve(descriptor('Walnut'), PriceLevel.REGULAR)


class PacingTests(SimpleTestCase):
    """Test pacing policies"""

    def test_fixed_interval(self):
        """Test waits are spaced by the interval and the first call is free"""
        clock = FakeClock()
        sleeps = []

        def sleep(seconds):
            sleeps.append(seconds)
            clock.sleep(seconds)

        pacer = FixedIntervalPacer(1.0, clock=clock, sleep=sleep)
        pacer.wait()
        clock.now = 0.25
        pacer.wait()
        clock.now = 3.0
        pacer.wait()

        self.assertEqual(sleeps, [0.75])

    def test_zero_interval(self):
        """Test a zero interval never sleeps"""
        sleep = mock.Mock()
        pacer = FixedIntervalPacer(0, sleep=sleep)
        pacer.wait()
        pacer.wait()

        sleep.assert_not_called()

    def test_no_pacing(self):
        """Test the no-op policy"""
        self.assertEqual(NoPacing().wait(), 0.0)


class StyleTextureGeneratorTests(TestCase):
    """Test texture generation for a style end to end"""

    def setUp(self):
        create_categories('wall-finishes', 'wood-finishes', 'stone-finishes')
        self.style = TestDataFactory.create_style(name_en='Modern Classic', material_guidance=SCENARIO_GUIDANCE)
        self.match_client = mock.Mock()
        self.match_client.match.side_effect = propose_own_name

    def generator(self, match_client=None):
        cache = MatchContextCache()
        resolver = TextureResolver(cache, TextureSynthesizer(cache), match_client=match_client or self.match_client)
        return StyleTextureGenerator(resolver, NoPacing())

    def test_scenario_empty_catalog(self):
        """Test three materials create, file and link three textures"""
        result = self.generator().process_style(self.style.id, SCENARIO_GUIDANCE, PriceLevel.REGULAR)

        self.assertEqual(len(result.texture_ids), 3)
        self.assertEqual(Texture.objects.count(), 3)
        self.assertEqual(TextureMaterialCategory.objects.count(), 3)
        self.assertEqual(StyleTexture.objects.filter(style=self.style).count(), 3)
        self.assertEqual(result.stats.created, 3)
        self.assertEqual(result.stats.errors, 0)

        textures = [Texture.objects.get(pk=texture_id) for texture_id in result.texture_ids]
        self.assertEqual([t.name_en for t in textures], ['Oak', 'Paint', 'Marble'])
        self.assertEqual(
            [t.categories.get().slug for t in textures],
            ['wood-finishes', 'wall-finishes', 'stone-finishes']
        )
        self.assertEqual([t.finish for t in textures], ['brushed', 'matte', 'polished'])
        self.assertEqual([t.usage for t in textures], [1, 1, 1])

    def test_scenario_reprocess(self):
        """Test reprocessing resolves by exact match and never double counts usage"""
        first = self.generator().process_style(self.style.id, SCENARIO_GUIDANCE, PriceLevel.REGULAR)
        self.match_client.match.reset_mock()

        second = self.generator().process_style(self.style.id, SCENARIO_GUIDANCE, PriceLevel.REGULAR)

        self.assertEqual(second.texture_ids, first.texture_ids)
        self.assertEqual(second.stats.created, 0)
        self.assertEqual(second.stats.matched, 3)
        self.match_client.match.assert_not_called()
        self.assertEqual(Texture.objects.count(), 3)
        self.assertEqual(StyleTexture.objects.filter(style=self.style).count(), 3)
        self.assertEqual(sorted(Texture.objects.values_list('usage', flat=True)), [1, 1, 1])

    def test_budget_cap(self):
        """Test only max_textures descriptors are processed"""
        textures = [TestDataFactory.create_texture() for _ in range(9)]
        resolver = mock.Mock()
        resolver.resolve.side_effect = [Resolution(texture_id=t.id, tier='exact') for t in textures]
        generator = StyleTextureGenerator(resolver, NoPacing())

        result = generator.process_style(self.style.id, NINE_MATERIALS, PriceLevel.REGULAR, max_textures=5)

        self.assertEqual(resolver.resolve.call_count, 5)
        self.assertEqual(result.texture_ids, [t.id for t in textures[:5]])
        self.assertEqual([call.args[0].name for call in resolver.resolve.call_args_list],
                         ['Oak', 'Marble', 'Velvet', 'Brass', 'Linen'])

    def test_non_positive_budget_uses_default(self):
        """Test a negative budget falls back to the default instead of trimming from the end"""
        textures = [TestDataFactory.create_texture() for _ in range(3)]
        resolver = mock.Mock()
        resolver.resolve.side_effect = [Resolution(texture_id=t.id, tier='exact') for t in textures]
        generator = StyleTextureGenerator(resolver, NoPacing())

        result = generator.process_style(self.style.id, SCENARIO_GUIDANCE, PriceLevel.REGULAR, max_textures=-1)

        self.assertEqual(resolver.resolve.call_count, 3)
        self.assertEqual(result.texture_ids, [t.id for t in textures])

    def test_ai_always_failing(self):
        """Test every descriptor still resolves when the AI is unavailable"""
        failing = mock.Mock()
        failing.match.side_effect = TextureMatchError('service unavailable')

        result = self.generator(failing).process_style(self.style.id, SCENARIO_GUIDANCE, PriceLevel.REGULAR)

        self.assertEqual(failing.match.call_count, 3)
        self.assertEqual(len(result.texture_ids), 3)
        self.assertEqual(result.stats.created, 3)
        self.assertEqual(StyleTexture.objects.filter(style=self.style).count(), 3)

    def test_descriptor_failure_is_skipped(self):
        """Test one failing descriptor does not stop the rest"""
        oak = TestDataFactory.create_texture(name_en='Oak')
        marble = TestDataFactory.create_texture(name_en='Marble')
        resolver = mock.Mock()
        resolver.resolve.side_effect = [
            Resolution(texture_id=oak.id, tier='exact'),
            RuntimeError('boom'),
            Resolution(texture_id=marble.id, tier='exact'),
        ]

        result = StyleTextureGenerator(resolver, NoPacing()).process_style(
            self.style.id, SCENARIO_GUIDANCE, PriceLevel.REGULAR,
        )

        self.assertEqual(result.texture_ids, [oak.id, marble.id])
        self.assertEqual(result.stats.errors, 1)
        self.assertEqual(result.errors[0].name, 'Paint')
        self.assertEqual(result.errors[0].message, 'boom')

    def test_duplicate_materials_linked_once(self):
        """Test a repeated material resolves to the same texture and is listed once"""
        result = self.generator().process_style(self.style.id, "oak floor, oak paneling", PriceLevel.REGULAR)

        self.assertEqual(len(result.texture_ids), 1)
        self.assertEqual(self.match_client.match.call_count, 1)
        self.assertEqual(Texture.objects.get().usage, 1)

    def test_style_name_is_default_context(self):
        """Test the style name is sent as context when none is given"""
        self.generator().process_style(self.style.id, "velvet sofa", PriceLevel.LUXURY)

        self.assertEqual(self.match_client.match.call_args.kwargs['style_context'], 'Modern Classic')

    def test_pacing_between_descriptors(self):
        """Test the pacer is consulted once per processed descriptor"""
        pacer = mock.Mock()
        cache = MatchContextCache()
        resolver = TextureResolver(cache, TextureSynthesizer(cache), match_client=self.match_client)

        StyleTextureGenerator(resolver, pacer).process_style(self.style.id, SCENARIO_GUIDANCE, PriceLevel.REGULAR)

        self.assertEqual(pacer.wait.call_count, 3)

    def test_generate_textures_for_style(self):
        """Test the id-only entry point"""
        ids = generate_textures_for_style(
            self.style.id, SCENARIO_GUIDANCE, PriceLevel.REGULAR, generator=self.generator(),
        )

        self.assertEqual(ids, list(self.style.texture_links.values_list('texture_id', flat=True)))

    def test_empty_guidance(self):
        """Test a style without materials links nothing"""
        result = self.generator().process_style(self.style.id, '', PriceLevel.REGULAR)

        self.assertEqual(result.texture_ids, [])
        self.match_client.match.assert_not_called()


class GenerateStyleTexturesCommandTests(TestCase):
    """Test the generate_style_textures management command"""

    def setUp(self):
        create_categories('wall-finishes', 'wood-finishes', 'stone-finishes')
        self.match_client = mock.Mock()
        self.match_client.match.side_effect = propose_own_name

    def run_command(self, *args):
        cache = MatchContextCache()
        resolver = TextureResolver(cache, TextureSynthesizer(cache), match_client=self.match_client)
        generator = StyleTextureGenerator(resolver, NoPacing())
        out = StringIO()
        with mock.patch(
            'backend.seeding.management.commands.generate_style_textures.StyleTextureGenerator.from_settings',
            return_value=generator,
        ):
            call_command('generate_style_textures', '--no-images', '--delay', '0', *args, stdout=out)
        return out.getvalue()

    def test_processes_styles_with_guidance(self):
        """Test styles with guidance get textures and linked styles are skipped"""
        pending = TestDataFactory.create_style(material_guidance=SCENARIO_GUIDANCE)
        done = TestDataFactory.create_style(material_guidance='velvet sofa')
        TestDataFactory.create_style_texture(done, TestDataFactory.create_texture())
        TestDataFactory.create_style()

        output = self.run_command()

        self.assertEqual(pending.texture_links.count(), 3)
        self.assertEqual(done.texture_links.count(), 1)
        self.assertIn('Styles Processed: 1', output)
        self.assertIn('Styles Skipped (already have textures): 1', output)

    def test_force_and_style_filter(self):
        """Test --force reprocesses linked styles and --style limits the batch"""
        done = TestDataFactory.create_style(slug='velvet-lounge', material_guidance='velvet sofa')
        TestDataFactory.create_style_texture(done, TestDataFactory.create_texture())
        other = TestDataFactory.create_style(material_guidance=SCENARIO_GUIDANCE)

        self.run_command('--force', '--style', 'velvet-lounge')

        self.assertEqual(done.texture_links.count(), 2)
        self.assertEqual(other.texture_links.count(), 0)

    def test_max_textures(self):
        """Test the per-style budget option"""
        style = TestDataFactory.create_style(material_guidance=NINE_MATERIALS)

        self.run_command('--max-textures', '2')

        self.assertEqual(style.texture_links.count(), 2)

    def test_non_positive_max_textures_rejected(self):
        """Test a zero or negative budget is rejected before any style is processed"""
        style = TestDataFactory.create_style(material_guidance=SCENARIO_GUIDANCE)

        for value in ('0', '-1'):
            with self.assertRaises(CommandError):
                self.run_command('--max-textures', value)

        self.assertEqual(style.texture_links.count(), 0)
        self.match_client.match.assert_not_called()

    def test_unknown_organization(self):
        """Test an unknown organization slug is rejected"""
        with self.assertRaises(CommandError):
            self.run_command('--organization', 'missing-org')


class SeedMaterialCategoriesCommandTests(TestCase):
    """Test the seed_material_categories management command"""

    def test_idempotent(self):
        """Test running twice creates each category once"""
        call_command('seed_material_categories', stdout=StringIO())
        call_command('seed_material_categories', stdout=StringIO())

        self.assertEqual(MaterialCategory.objects.count(), 6)
        wood = MaterialCategory.objects.get(slug='wood-finishes')
        self.assertEqual(wood.name_he, 'גימורי עץ')

    def test_parser_categories_exist(self):
        """Test every category the parser can infer is seeded"""
        from backend.seeding.parser import DEFAULT_CATEGORY_SLUG, MATERIAL_TO_CATEGORY

        call_command('seed_material_categories', stdout=StringIO())

        slugs = set(MaterialCategory.objects.values_list('slug', flat=True))
        self.assertTrue(set(MATERIAL_TO_CATEGORY.values()) <= slugs)
        self.assertIn(DEFAULT_CATEGORY_SLUG, slugs)

    def test_clear(self):
        """Test --clear removes categories not in the predefined list"""
        TestDataFactory.create_material_category(slug='obsolete')

        call_command('seed_material_categories', '--clear', stdout=StringIO())

        self.assertFalse(MaterialCategory.objects.filter(slug='obsolete').exists())
        self.assertEqual(MaterialCategory.objects.count(), 6)

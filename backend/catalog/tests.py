"""
Test suite for the catalog module
Tests: texture model rules, style-texture link bookkeeping and the texture API endpoints
"""
from django.core.exceptions import ValidationError
from django.test import TestCase
from rest_framework import status

from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.catalog.models import StyleTexture, Texture
from backend.catalog.utils import (
    get_style_textures, group_textures_by_category, link_style_to_texture, unlink_texture_from_style,
)


class TextureModelTests(TestCase):
    """Test Texture model rules"""

    def test_bilingual_name_required(self):
        """Test a texture cannot be saved with one of its names empty"""
        with self.assertRaises(ValidationError):
            Texture.objects.create(name_en='Oak', name_he='')
        with self.assertRaises(ValidationError):
            Texture.objects.create(name_en='  ', name_he='אלון')

        self.assertEqual(Texture.objects.count(), 0)

    def test_field_validators_run_on_save(self):
        """Test length and URL validators reject a texture before it is written"""
        with self.assertRaises(ValidationError):
            Texture.objects.create(name_en='Oak', name_he='אלון', image_url='not a url')
        with self.assertRaises(ValidationError):
            Texture.objects.create(name_en='Oak', name_he='אלון', image_url='https://images.test/' + 'a' * 1000)
        with self.assertRaises(ValidationError):
            Texture.objects.create(name_en='O' * 201, name_he='אלון')

        self.assertEqual(Texture.objects.count(), 0)

    def test_defaults(self):
        """Test curated textures start unused and completed"""
        texture = TestDataFactory.create_texture(name_en='Oak', name_he='אלון')

        self.assertEqual(texture.usage, 0)
        self.assertFalse(texture.is_abstract)
        self.assertEqual(texture.generation_status, 'COMPLETED')
        self.assertEqual(texture.name, {'en': 'Oak', 'he': 'אלון'})
        self.assertEqual(str(texture), 'Oak (natural)')


class StyleTextureLinkTests(TestCase):
    """Test link and usage bookkeeping"""

    def setUp(self):
        self.style = TestDataFactory.create_style()
        self.texture = TestDataFactory.create_texture()

    def test_link_increments_usage(self):
        """Test linking creates the link and bumps usage"""
        created = link_style_to_texture(self.style.id, self.texture.id)

        self.assertTrue(created)
        self.texture.refresh_from_db()
        self.assertEqual(self.texture.usage, 1)
        self.assertEqual(StyleTexture.objects.filter(style=self.style, texture=self.texture).count(), 1)
        self.assertTrue(AuditLog.objects.filter(action='texture_link', object_reference=str(self.style.id)).exists())

    def test_link_is_idempotent(self):
        """Test linking twice yields one link and one increment"""
        link_style_to_texture(self.style.id, self.texture.id)
        created = link_style_to_texture(self.style.id, self.texture.id)

        self.assertFalse(created)
        self.texture.refresh_from_db()
        self.assertEqual(self.texture.usage, 1)
        self.assertEqual(StyleTexture.objects.filter(style=self.style, texture=self.texture).count(), 1)

    def test_usage_counts_styles(self):
        """Test usage counts the distinct styles linking a texture"""
        other_style = TestDataFactory.create_style()

        link_style_to_texture(self.style.id, self.texture.id)
        link_style_to_texture(other_style.id, self.texture.id)

        self.texture.refresh_from_db()
        self.assertEqual(self.texture.usage, 2)

    def test_unlink_decrements_usage(self):
        """Test unlinking removes the link and decrements usage"""
        link_style_to_texture(self.style.id, self.texture.id)

        removed = unlink_texture_from_style(self.style.id, self.texture.id)

        self.assertEqual(removed, 1)
        self.texture.refresh_from_db()
        self.assertEqual(self.texture.usage, 0)
        self.assertFalse(StyleTexture.objects.filter(style=self.style).exists())
        self.assertTrue(AuditLog.objects.filter(action='texture_unlink').exists())

    def test_unlink_missing_link(self):
        """Test unlinking a pair that is not linked changes nothing"""
        texture = TestDataFactory.create_texture(usage=3)

        removed = unlink_texture_from_style(self.style.id, texture.id)

        self.assertEqual(removed, 0)
        texture.refresh_from_db()
        self.assertEqual(texture.usage, 3)

    def test_unlink_never_below_zero(self):
        """Test a raw link without usage does not drive the counter negative"""
        TestDataFactory.create_style_texture(self.style, self.texture)

        unlink_texture_from_style(self.style.id, self.texture.id)

        self.texture.refresh_from_db()
        self.assertEqual(self.texture.usage, 0)

    def test_style_textures_grouped(self):
        """Test linked textures come back in link order grouped by first category"""
        wood = TestDataFactory.create_material_category(slug='wood-finishes', name_en='Wood Finishes')
        oak = TestDataFactory.create_texture(name_en='Oak', category=wood)
        link_style_to_texture(self.style.id, oak.id)
        link_style_to_texture(self.style.id, self.texture.id)

        links = list(get_style_textures(self.style.id))
        grouped = group_textures_by_category(links)

        self.assertEqual([link.texture_id for link in links], [oak.id, self.texture.id])
        self.assertEqual(list(grouped.keys()), ['Wood Finishes', 'Uncategorized'])


class StyleTextureAPITests(TestCase):
    """Test the style texture endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.style = TestDataFactory.create_style()
        self.wood = TestDataFactory.create_material_category(slug='wood-finishes', name_en='Wood Finishes')
        self.texture = TestDataFactory.create_texture(name_en='Oak', name_he='אלון', category=self.wood)

    def url(self):
        return f'/api/v1/styles/{self.style.id}/textures/'

    def test_requires_authentication(self):
        """Test anonymous requests are rejected"""
        self.client.logout()

        response = self.client.get(self.url())

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_link_via_api(self):
        """Test POST links once and reports whether a link was created"""
        response = self.client.post(self.url(), {'texture_id': self.texture.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['created'])

        response = self.client.post(self.url(), {'texture_id': self.texture.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['created'])

        self.texture.refresh_from_db()
        self.assertEqual(self.texture.usage, 1)
        self.assertEqual(AuditLog.objects.get(action='texture_link').user, self.user)

    def test_link_unknown_texture(self):
        """Test linking a texture that does not exist is a validation error"""
        response = self.client.post(self.url(), {'texture_id': 999999}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('texture_id', response.data)

    def test_list_grouped(self):
        """Test GET lists textures with per-category grouping and counts"""
        link_style_to_texture(self.style.id, self.texture.id)

        response = self.client.get(self.url())

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['counts']['total'], 1)
        self.assertEqual(response.data['counts']['by_category'], [{'category': 'Wood Finishes', 'count': 1}])
        self.assertEqual(response.data['textures'][0]['texture']['name'], {'en': 'Oak', 'he': 'אלון'})
        self.assertIn('Wood Finishes', response.data['grouped_by_category'])

    def test_unlink_via_api(self):
        """Test DELETE unlinks, then reports a missing link"""
        link_style_to_texture(self.style.id, self.texture.id)
        url = f'{self.url()}{self.texture.id}/'

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        self.texture.refresh_from_db()
        self.assertEqual(self.texture.usage, 0)

    def test_unknown_style(self):
        """Test a missing style is a 404"""
        response = self.client.get('/api/v1/styles/999999/textures/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class TextureAPITests(TestCase):
    """Test the texture list endpoint and its filters"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.wood = TestDataFactory.create_material_category(slug='wood-finishes')
        self.stone = TestDataFactory.create_material_category(slug='stone-finishes')
        self.organization = TestDataFactory.create_organization()
        self.oak = TestDataFactory.create_texture(name_en='Oak', name_he='אלון', finish='brushed', category=self.wood)
        self.marble = TestDataFactory.create_texture(
            name_en='Marble', name_he='שיש', finish='polished', category=self.stone, organization=self.organization,
        )

    def names(self, response):
        return sorted(item['name_en'] for item in response.data)

    def test_list_all(self):
        """Test every texture is listed"""
        response = self.client.get('/api/v1/textures/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.names(response), ['Marble', 'Oak'])

    def test_filter_by_category(self):
        """Test the category slug filter"""
        response = self.client.get('/api/v1/textures/', {'category': 'stone-finishes'})

        self.assertEqual(self.names(response), ['Marble'])

    def test_filter_by_finish(self):
        """Test the finish filter is case-insensitive"""
        response = self.client.get('/api/v1/textures/', {'finish': 'BRUSHED'})

        self.assertEqual(self.names(response), ['Oak'])

    def test_filter_by_organization(self):
        """Test the organization filter"""
        response = self.client.get('/api/v1/textures/', {'organization': self.organization.id})

        self.assertEqual(self.names(response), ['Marble'])

    def test_search_hebrew(self):
        """Test search matches Hebrew names"""
        response = self.client.get('/api/v1/textures/', {'search': 'אלון'})

        self.assertEqual(self.names(response), ['Oak'])

    def test_detail(self):
        """Test a single texture with its categories"""
        response = self.client.get(f'/api/v1/textures/{self.oak.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['categories'][0]['slug'], 'wood-finishes')

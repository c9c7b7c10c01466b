"""
Tiered texture resolution.

For one parsed material descriptor, find the texture it should link to, trying
in order and stopping at the first confident answer:

1. exact name match in the catalog (English or Hebrew)
2. heuristic string similarity against the cached match context
3. AI semantic match, which may link, propose a new texture, or be unclear

Anything the tiers cannot settle, including any failure of the AI call, ends in
keyword-based fallback synthesis so the descriptor is never silently dropped.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from django.db.models import Q

from backend.catalog.models import Texture
from .ai_client import Created, Linked, Unclear
from .heuristics import heuristic_texture_match, similarity_score
from .translations import get_material_name_hebrew

logger = logging.getLogger(__name__)

HEURISTIC_CONFIDENCE_THRESHOLD = 0.85

TIER_EXACT = 'exact'
TIER_HEURISTIC = 'heuristic'
TIER_SEMANTIC = 'semantic'
TIER_CREATED = 'created'
TIER_FALLBACK = 'fallback'


@dataclass(frozen=True)
class ResolveOptions:
    organization_id: Optional[int] = None
    generate_images: bool = False
    style_context: Optional[str] = None


@dataclass(frozen=True)
class Resolution:
    texture_id: int
    tier: str
    created: bool = False
    image_generated: bool = False
    confidence: Optional[float] = None


def visible_to(organization_id):
    """Queryset filter for textures an organization may reuse"""
    if organization_id is None:
        return Q()
    return Q(organization__isnull=True) | Q(organization_id=organization_id)


class TextureResolver:
    def __init__(self, context_cache, synthesizer, match_client=None, similarity=similarity_score,
                 heuristic_threshold=HEURISTIC_CONFIDENCE_THRESHOLD):
        self.context_cache = context_cache
        self.synthesizer = synthesizer
        self.match_client = match_client
        self.similarity = similarity
        self.heuristic_threshold = heuristic_threshold

    def exact_match(self, name, organization_id=None):
        names = Q(name_en=name) | Q(name_he=name)
        name_he = get_material_name_hebrew(name)
        if name_he != name:
            names |= Q(name_he=name_he)
        return (
            Texture.objects
            .filter(names)
            .filter(visible_to(organization_id))
            .order_by('-usage', 'id')
            .values_list('id', flat=True)
            .first()
        )

    def _fallback(self, descriptor, price_level, options, reasoning):
        synthesized = self.synthesizer.create_fallback(
            descriptor,
            price_level,
            organization_id=options.organization_id,
            generate_images=options.generate_images,
            reasoning=reasoning,
        )
        return Resolution(
            texture_id=synthesized.texture_id,
            tier=TIER_FALLBACK,
            created=True,
            image_generated=synthesized.image_generated,
        )

    def resolve(self, descriptor, price_level, options: Optional[ResolveOptions] = None) -> Resolution:
        options = options or ResolveOptions()
        name = descriptor.name

        texture_id = self.exact_match(name, options.organization_id)
        if texture_id is not None:
            logger.info(f"Exact match for '{name}': texture {texture_id}")
            return Resolution(texture_id=texture_id, tier=TIER_EXACT, confidence=1.0)

        # Read failures propagate; an empty context would only produce false misses
        context = self.context_cache.get_context()
        textures = context.visible_textures(options.organization_id)

        heuristic = heuristic_texture_match(
            name,
            textures,
            finish=descriptor.finish,
            category_slug=descriptor.category_slug,
            similarity=self.similarity,
        )
        if heuristic.matched and heuristic.confidence >= self.heuristic_threshold:
            logger.info(f"Heuristic match for '{name}': texture {heuristic.texture_id} ({heuristic.confidence:.2f})")
            return Resolution(texture_id=heuristic.texture_id, tier=TIER_HEURISTIC, confidence=heuristic.confidence)
        logger.debug(f"No heuristic match for '{name}' (best {heuristic.confidence:.2f})")

        if self.match_client is None:
            return self._fallback(descriptor, price_level, options, 'AI matching not configured')

        try:
            decision = self.match_client.match(
                name,
                textures,
                context.categories,
                style_context=options.style_context,
                price_level=str(price_level),
            )
        except Exception as e:
            logger.warning(f"AI match failed for '{name}', using fallback: {e}")
            return self._fallback(descriptor, price_level, options, f'AI match failed: {e}')

        if isinstance(decision, Linked):
            logger.info(f"AI linked '{name}' to texture {decision.target_id} ({decision.confidence:.2f}): {decision.reasoning}")
            return Resolution(texture_id=decision.target_id, tier=TIER_SEMANTIC, confidence=decision.confidence)

        if isinstance(decision, Created):
            logger.info(f"AI proposed new texture '{decision.proposal.name_en}' for '{name}': {decision.reasoning}")
            synthesized = self.synthesizer.create_from_ai(
                decision.proposal,
                descriptor,
                price_level,
                organization_id=options.organization_id,
                generate_images=options.generate_images,
                reasoning=decision.reasoning,
            )
            return Resolution(
                texture_id=synthesized.texture_id,
                tier=TIER_CREATED,
                created=True,
                image_generated=synthesized.image_generated,
                confidence=decision.confidence,
            )

        if isinstance(decision, Unclear):
            logger.warning(f"AI answer for '{name}' was inconclusive, using fallback: {decision.reasoning}")
            return self._fallback(descriptor, price_level, options, decision.reasoning)

        raise TypeError(f"Unexpected match decision: {decision!r}")

"""
Texture generation for styles.

Parses a style's material guidance, resolves each material to a texture (reusing
or creating one) and links the texture to the style. Descriptors are processed
one at a time, in the order they appear in the guidance, so later descriptors
see textures created by earlier ones. Each descriptor is its own unit of work:
a failure is logged, recorded and skipped.
"""
import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings

from backend.catalog.models import PriceLevel, Style
from backend.catalog.utils import link_style_to_texture
from .ai_client import TextureMatchClient
from .image_service import TextureImageGenerator
from .match_context import MatchContextCache
from .pacing import FixedIntervalPacer
from .parser import parse_material_guidance
from .resolver import ResolveOptions, TextureResolver
from .synthesizer import TextureSynthesizer

logger = logging.getLogger(__name__)

DEFAULT_MAX_TEXTURES = 5

# Delay between descriptors to respect external API rate limits
TEXTURE_PIPELINE_PACING_SECONDS = float(getattr(
    settings,
    'TEXTURE_PIPELINE_PACING_SECONDS',
    os.getenv('TEXTURE_PIPELINE_PACING_SECONDS', '1.0')
))


@dataclass
class TextureGenerationStats:
    matched: int = 0
    created: int = 0
    images: int = 0
    errors: int = 0


@dataclass
class DescriptorError:
    name: str
    message: str


@dataclass
class TextureGenerationResult:
    style_id: int
    texture_ids: List[int] = field(default_factory=list)
    stats: TextureGenerationStats = field(default_factory=TextureGenerationStats)
    errors: List[DescriptorError] = field(default_factory=list)


class StyleTextureGenerator:
    """Runs the parse, resolve, link loop for styles. Owns its match context cache through the resolver."""

    def __init__(self, resolver, pacer):
        self.resolver = resolver
        self.pacer = pacer

    @classmethod
    def from_settings(cls, match_client=None, image_generator=None, pacer=None):
        context_cache = MatchContextCache()
        synthesizer = TextureSynthesizer(context_cache, image_generator or TextureImageGenerator())
        resolver = TextureResolver(
            context_cache,
            synthesizer,
            match_client=match_client if match_client is not None else TextureMatchClient.from_settings(),
        )
        return cls(resolver, pacer or FixedIntervalPacer(TEXTURE_PIPELINE_PACING_SECONDS))

    def process_style(self, style_id, guidance, price_level=PriceLevel.REGULAR, organization_id=None,
                      max_textures=DEFAULT_MAX_TEXTURES, generate_images=False,
                      style_context: Optional[str] = None) -> TextureGenerationResult:
        result = TextureGenerationResult(style_id=style_id)
        if not max_textures or max_textures < 1:
            max_textures = DEFAULT_MAX_TEXTURES

        logger.info(f"Generating textures for style {style_id} ({price_level}): {(guidance or '')[:100]}")

        descriptors = parse_material_guidance(guidance, price_level)
        selected = descriptors[:max_textures]
        logger.info(f"Parsed {len(descriptors)} materials, processing {len(selected)}")

        if style_context is None:
            style_context = Style.objects.filter(pk=style_id).values_list('name_en', flat=True).first()

        options = ResolveOptions(
            organization_id=organization_id,
            generate_images=generate_images,
            style_context=style_context,
        )

        for descriptor in selected:
            self.pacer.wait()
            try:
                resolution = self.resolver.resolve(descriptor, price_level, options)
                link_style_to_texture(style_id, resolution.texture_id)
            except Exception as e:
                logger.error(f"Failed to process material '{descriptor.name}' for style {style_id}: {e}", exc_info=True)
                result.stats.errors += 1
                result.errors.append(DescriptorError(name=descriptor.name, message=str(e)))
                continue

            if resolution.created:
                result.stats.created += 1
            else:
                result.stats.matched += 1
            if resolution.image_generated:
                result.stats.images += 1
            if resolution.texture_id not in result.texture_ids:
                result.texture_ids.append(resolution.texture_id)

        logger.info(
            f"Style {style_id}: {len(result.texture_ids)} textures linked "
            f"(matched {result.stats.matched}, created {result.stats.created}, "
            f"images {result.stats.images}, errors {result.stats.errors})"
        )
        return result


def generate_textures_for_style(style_id, guidance, price_level=PriceLevel.REGULAR, organization_id=None,
                                max_textures=DEFAULT_MAX_TEXTURES, generate_images=False,
                                style_context=None, generator=None) -> List[int]:
    """Ids of the textures linked to the style, in guidance order"""
    generator = generator or StyleTextureGenerator.from_settings()
    result = generator.process_style(
        style_id,
        guidance,
        price_level,
        organization_id=organization_id,
        max_textures=max_textures,
        generate_images=generate_images,
        style_context=style_context,
    )
    return result.texture_ids

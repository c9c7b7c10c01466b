"""
Texture synthesis: creating a texture when nothing in the catalog matches.

Two paths, both ending with a persisted texture linked to exactly one material
category and an invalidated match context:

- AI-guided, from a proposal returned by the semantic matcher
- fallback, from the parsed descriptor alone (AI failed or was inconclusive)
"""
import logging
from dataclasses import dataclass
from typing import Optional

from django.db import transaction

from backend.catalog.models import MaterialCategory, Texture, TextureMaterialCategory
from backend.core.utils import create_audit_log
from .exceptions import NoMaterialCategoriesError
from .translations import get_material_name_hebrew

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 200
ATTRIBUTE_MAX_LENGTH = 50
IMAGE_URL_MAX_LENGTH = 1000


@dataclass(frozen=True)
class SynthesizedTexture:
    texture_id: int
    image_generated: bool = False


def _clip(value, length):
    return (value or '')[:length]


class TextureSynthesizer:
    def __init__(self, context_cache, image_generator=None):
        self.context_cache = context_cache
        self.image_generator = image_generator

    def resolve_category(self, descriptor, category_id=None):
        """
        Category for a new texture: the proposed id when it exists, else the
        descriptor's category slug, else any category at all.
        """
        if category_id is not None:
            category = MaterialCategory.objects.filter(pk=category_id).first()
            if category:
                return category
            logger.warning(f"Proposed category {category_id} no longer exists, using slug '{descriptor.category_slug}'")

        category = MaterialCategory.objects.filter(slug=descriptor.category_slug).first()
        if category:
            return category

        category = MaterialCategory.objects.order_by('id').first()
        if category is None:
            raise NoMaterialCategoriesError(
                f"Cannot create texture '{descriptor.name}': no material categories exist"
            )
        # May misfile the texture; kept visible in the logs for later review
        logger.warning(
            f"Category '{descriptor.category_slug}' not found for '{descriptor.name}', "
            f"filing under '{category.slug}'"
        )
        return category

    def _generate_image(self, name_en, name_he, price_level, finish, generate_images):
        if not generate_images or self.image_generator is None:
            return None
        try:
            image_url = self.image_generator.generate(name_en, name_he, price_level, finish)
        except Exception as e:
            logger.warning(f"Failed to generate texture image for '{name_en}', continuing without image: {e}")
            return None
        if image_url and len(image_url) > IMAGE_URL_MAX_LENGTH:
            logger.warning(f"Image URL for '{name_en}' is longer than {IMAGE_URL_MAX_LENGTH} characters, continuing without image")
            return None
        return image_url

    def _persist(self, *, name_en, name_he, finish, sheen, base_color, category, descriptor,
                 organization_id, image_url, description):
        with transaction.atomic():
            texture = Texture.objects.create(
                organization_id=organization_id,
                name_en=_clip(name_en, NAME_MAX_LENGTH),
                name_he=_clip(name_he, NAME_MAX_LENGTH),
                finish=_clip(finish, ATTRIBUTE_MAX_LENGTH) or descriptor.finish,
                sheen=_clip(sheen, ATTRIBUTE_MAX_LENGTH),
                base_color=_clip(base_color, ATTRIBUTE_MAX_LENGTH),
                is_abstract=True,
                generation_status='COMPLETED',
                ai_description=description,
                image_url=image_url or '',
                tags=list(descriptor.keywords),
            )
            TextureMaterialCategory.objects.create(texture=texture, material_category=category)

        self.context_cache.invalidate()
        logger.info(f"Created texture {texture.id}: {texture.name_en} / {texture.name_he} ({texture.finish}) in {category.slug}")

        create_audit_log(
            action='texture_create',
            model_name='Texture',
            object_id=texture.id,
            object_name=texture.name_en,
            object_reference=category.slug,
            changes={
                'name_en': texture.name_en,
                'name_he': texture.name_he,
                'finish': texture.finish,
                'category': category.slug,
                'image_generated': bool(image_url),
            },
        )
        return SynthesizedTexture(texture_id=texture.id, image_generated=bool(image_url))

    def create_from_ai(self, proposal, descriptor, price_level, organization_id=None,
                       generate_images=False, reasoning='') -> SynthesizedTexture:
        """Create a texture from an AI proposal"""
        category = self.resolve_category(descriptor, proposal.category_id)
        finish = proposal.finish or descriptor.finish
        image_url = self._generate_image(proposal.name_en, proposal.name_he, price_level, finish, generate_images)

        return self._persist(
            name_en=proposal.name_en,
            name_he=proposal.name_he,
            finish=finish,
            sheen=proposal.sheen,
            base_color=proposal.base_color,
            category=category,
            descriptor=descriptor,
            organization_id=organization_id,
            image_url=image_url,
            description=f"AI-generated texture for {proposal.name_en}. {reasoning}".strip(),
        )

    def create_fallback(self, descriptor, price_level, organization_id=None,
                        generate_images=False, reasoning: Optional[str] = None) -> SynthesizedTexture:
        """Create a texture from the descriptor alone, with a table-based Hebrew name"""
        category = self.resolve_category(descriptor)
        name_he = get_material_name_hebrew(descriptor.name)
        image_url = self._generate_image(descriptor.name, name_he, price_level, descriptor.finish, generate_images)

        return self._persist(
            name_en=descriptor.name,
            name_he=name_he,
            finish=descriptor.finish,
            sheen='',
            base_color='',
            category=category,
            descriptor=descriptor,
            organization_id=organization_id,
            image_url=image_url,
            description=f"Keyword-based texture for {descriptor.name} ({descriptor.finish}). {reasoning or ''}".strip(),
        )

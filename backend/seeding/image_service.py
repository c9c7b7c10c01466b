"""
Client for the external image-generation service.
Requests one close-up image for a texture and returns its URL.
"""
import os
import requests
import logging
from typing import Optional
from django.conf import settings

from backend.catalog.models import PriceLevel
from .exceptions import ImageGenerationError

logger = logging.getLogger(__name__)

# Image generation endpoint (configure in settings or environment)
IMAGE_GENERATION_URL = getattr(
    settings,
    'IMAGE_GENERATION_URL',
    os.getenv('IMAGE_GENERATION_URL', '')
)

# Image generation key (for authentication)
IMAGE_GENERATION_KEY = getattr(
    settings,
    'IMAGE_GENERATION_KEY',
    os.getenv('IMAGE_GENERATION_KEY', '')
)

IMAGE_GENERATION_TIMEOUT = float(getattr(
    settings,
    'IMAGE_GENERATION_TIMEOUT',
    os.getenv('IMAGE_GENERATION_TIMEOUT', '60')
))

LUXURY_KEYWORDS = 'Sophisticated, Refined, Premium finish, Artisanal, High-quality'
REGULAR_KEYWORDS = 'Practical, Quality, Accessible, Standard finish, Functional'


def build_texture_image_prompt(name_en: str, price_level: str = PriceLevel.REGULAR, finish: Optional[str] = None) -> str:
    """Close-up photography prompt for a texture"""
    tier = str(price_level or PriceLevel.REGULAR)
    finish = finish or 'natural'
    keywords = LUXURY_KEYWORDS if tier == PriceLevel.LUXURY else REGULAR_KEYWORDS

    return f"""Create a stunning, professional CLOSE-UP photograph showcasing "{name_en}" texture with {finish} finish.

Price Tier: {tier}
Finish: {finish}
Keywords: {keywords}

The image should:
- MACRO CLOSE-UP showing the texture's surface pattern and finish
- Capture the visual and tactile character of the {finish} finish
- Show {tier.lower()}-tier texture quality and craftsmanship
- Perfect lighting that emphasizes the texture pattern and sheen
- Be photorealistic and suitable for a texture library

CRITICAL CONSTRAINT: NO humans, NO furniture, NO room context - ONLY the texture surface in detailed close-up."""


class TextureImageGenerator:
    """
    Best-effort texture image generation.

    `generate` returns None when the service is not configured or produced no
    image, and raises ImageGenerationError when the call itself failed.
    """

    def __init__(self, url=None, key=None, timeout=None, session=None):
        self.url = IMAGE_GENERATION_URL if url is None else url
        self.key = IMAGE_GENERATION_KEY if key is None else key
        self.timeout = IMAGE_GENERATION_TIMEOUT if timeout is None else timeout
        self.session = session or requests

    @property
    def enabled(self):
        return bool(self.url)

    def generate(self, name_en: str, name_he: str, price_level=PriceLevel.REGULAR, finish: Optional[str] = None) -> Optional[str]:
        if not self.enabled:
            logger.debug("IMAGE_GENERATION_URL not configured, skipping texture image")
            return None

        payload = {
            'entityType': 'texture',
            'entityName': {'he': name_he, 'en': name_en},
            'priceLevel': str(price_level),
            'numberOfImages': 1,
            'finish': finish or 'natural',
            'prompt': build_texture_image_prompt(name_en, price_level, finish),
        }

        headers = {
            'Content-Type': 'application/json',
        }
        if self.key:
            headers['x-functions-key'] = self.key

        try:
            response = self.session.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise ImageGenerationError(f"Image generation request failed for '{name_en}': {e}") from e
        except ValueError as e:
            raise ImageGenerationError(f"Image generation returned invalid JSON for '{name_en}': {e}") from e

        images = data.get('images') if isinstance(data, dict) else None
        if not images:
            logger.info(f"Image generation returned no image for '{name_en}'")
            return None

        image_url = images[0]
        logger.info(f"Texture image generated for '{name_en}': {image_url}")
        return image_url

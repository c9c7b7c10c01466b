"""
AI semantic matching for textures.

Asks a chat model whether a material name should be linked to an existing
texture or whether a new texture should be created, and turns the JSON answer
into one of three decisions: Linked, Created or Unclear.
"""
import json
import logging
from dataclasses import dataclass
from typing import Literal, Optional, Union

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from openai import AzureOpenAI, OpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import TextureMatchError

logger = logging.getLogger(__name__)

CONFIDENCE_THRESHOLD_LINK = 0.6  # Minimum confidence to trust a link decision
TEMPERATURE = 0.2  # Low for consistent matching
PROMPT_TEXTURE_LIMIT = 50  # Textures listed in the prompt


def create_api_client(config: dict, agent_name: str = "Texture Matcher"):
    """Create an OpenAI or AzureOpenAI client from a config dict."""
    api_type = config.get("type", "openai")

    if api_type == "azure":
        if not all([config.get("azure_endpoint"), config.get("api_key"), config.get("api_version")]):
            raise ImproperlyConfigured(f"[{agent_name}] 'azure_endpoint', 'api_key' and 'api_version' are required for the 'azure' type.")
        logger.debug(f"[{agent_name}] Initializing AzureOpenAI client for {config.get('azure_endpoint')}")
        return AzureOpenAI(
            azure_endpoint=config["azure_endpoint"],
            api_key=config["api_key"],
            api_version=config["api_version"],
            timeout=config.get("timeout"),
        )

    if api_type == "openai":
        if not config.get("api_key"):
            raise ImproperlyConfigured(f"[{agent_name}] 'api_key' is required for the 'openai' type.")
        kwargs = {"api_key": config["api_key"], "timeout": config.get("timeout")}
        if config.get("base_url"):
            logger.debug(f"[{agent_name}] Using custom base_url: {config['base_url']}")
            kwargs["base_url"] = config["base_url"]
        return OpenAI(**kwargs)

    raise ImproperlyConfigured(f"[{agent_name}] Unknown API type '{api_type}'. Must be 'azure' or 'openai'.")


# =============================================================================
# Response schema
# =============================================================================

class TextureNameSchema(BaseModel):
    he: str = ''
    en: str = ''


class NewTextureSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: TextureNameSchema
    finish: Optional[str] = None
    sheen: Optional[str] = None
    base_color: Optional[str] = Field(default=None, alias='baseColor')
    category_id: Optional[int] = Field(default=None, alias='categoryId')


class TextureMatchSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: Literal['link', 'create']
    matched_texture_id: Optional[int] = Field(default=None, alias='matchedTextureId')
    confidence: float = Field(ge=0, le=1)
    new_texture: Optional[NewTextureSchema] = Field(default=None, alias='newTexture')
    reasoning: str = ''


# =============================================================================
# Decisions
# =============================================================================

@dataclass(frozen=True)
class TextureProposal:
    name_en: str
    name_he: str
    finish: Optional[str] = None
    sheen: Optional[str] = None
    base_color: Optional[str] = None
    category_id: Optional[int] = None


@dataclass(frozen=True)
class Linked:
    target_id: int
    confidence: float
    reasoning: str = ''


@dataclass(frozen=True)
class Created:
    proposal: TextureProposal
    confidence: float
    reasoning: str = ''


@dataclass(frozen=True)
class Unclear:
    reasoning: str = ''


SemanticMatch = Union[Linked, Created, Unclear]


def _proposal_from_schema(new_texture, category_ids):
    if new_texture is None:
        return None
    name_en = (new_texture.name.en or '').strip()
    name_he = (new_texture.name.he or '').strip()
    if not name_en or not name_he:
        return None

    category_id = new_texture.category_id
    if category_id is not None and category_id not in category_ids:
        logger.warning(f"[Validation] Unknown category id {category_id} proposed for '{name_en}', dropping it")
        category_id = None

    return TextureProposal(
        name_en=name_en,
        name_he=name_he,
        finish=(new_texture.finish or '').strip() or None,
        sheen=(new_texture.sheen or '').strip() or None,
        base_color=(new_texture.base_color or '').strip() or None,
        category_id=category_id,
    )


def interpret_match(response: TextureMatchSchema, texture_ids, category_ids) -> SemanticMatch:
    """
    Validate a parsed AI answer against the ids that were offered.

    A link to an unknown id, or below the link threshold, is not trusted: it
    becomes Created when a usable proposal is attached and Unclear otherwise.
    """
    proposal = _proposal_from_schema(response.new_texture, category_ids)

    if response.action == 'link':
        target_id = response.matched_texture_id
        if target_id is not None and target_id in texture_ids and response.confidence >= CONFIDENCE_THRESHOLD_LINK:
            return Linked(target_id=target_id, confidence=response.confidence, reasoning=response.reasoning)
        logger.warning(f"[Validation] Untrusted link to {target_id} (confidence {response.confidence:.2f})")

    if proposal is not None:
        return Created(proposal=proposal, confidence=response.confidence, reasoning=response.reasoning)

    return Unclear(reasoning=response.reasoning or 'AI response had neither a valid link target nor a usable proposal')


# =============================================================================
# Prompt
# =============================================================================

def build_texture_match_prompt(texture_name, textures, categories, style_context=None, price_level=None):
    textures_for_prompt = '\n'.join(
        f'  - ID: {t.id} | Hebrew: "{t.name_he}" | English: "{t.name_en}" | Finish: {t.finish or "-"} | Category: {t.category_slug or "-"}'
        for t in textures[:PROMPT_TEXTURE_LIMIT]
    )
    categories_for_prompt = '\n'.join(
        f'  - ID: {c.id} | Hebrew: "{c.name_he}" | English: "{c.name_en}" | Slug: {c.slug}'
        for c in categories
    )

    return f"""You are an expert interior design texture specialist. Decide whether a texture name matches an existing texture in the database, or specify how to create a new one.

**CONTEXT**
{f'Style: {style_context}' if style_context else 'General interior design'}
{f'Price Level: {price_level}' if price_level else ''}

**TEXTURE TO MATCH**
"{texture_name}"

**AVAILABLE TEXTURES** ({len(textures)} total, showing first {PROMPT_TEXTURE_LIMIT}):
{textures_for_prompt or '  (none)'}

**AVAILABLE CATEGORIES**:
{categories_for_prompt or '  (none)'}

**YOUR TASK**
Answer with a single JSON object:
{{
  "action": "link" | "create",
  "matchedTextureId": <ID from AVAILABLE TEXTURES, required for link>,
  "confidence": <0.0 - 1.0>,
  "newTexture": {{
    "name": {{"he": "<Hebrew name>", "en": "<English name>"}},
    "finish": "<matte|glossy|satin|polished|brushed|rough|smooth|natural|lacquered|oiled>",
    "sheen": "<optional sheen>",
    "baseColor": "<optional base color>",
    "categoryId": <ID from AVAILABLE CATEGORIES>
  }},
  "reasoning": "<brief explanation>"
}}

**RULES**
1. Use EXACT IDs from the lists above - do not make up IDs
2. Match the BASE material, not descriptive prefixes ("Brushed oak" -> "Oak")
3. Cross-language matching: "אלון" = "Oak" (same texture)
4. Only link with confidence 0.6 or higher; otherwise create
5. For create, give proper Hebrew interior design terminology and omit matchedTextureId"""


# =============================================================================
# Client
# =============================================================================

class TextureMatchClient:
    """Semantic texture matcher backed by an OpenAI-compatible chat model"""

    def __init__(self, client, model, temperature=TEMPERATURE):
        self.client = client
        self.model = model
        self.temperature = temperature

    @classmethod
    def from_settings(cls):
        """Client built from settings.TEXTURE_MATCH_API, or None when no API key is configured"""
        config = getattr(settings, 'TEXTURE_MATCH_API', {}) or {}
        if not config.get('api_key'):
            logger.info("TEXTURE_MATCH_API has no api_key, AI texture matching disabled")
            return None
        if not config.get('model'):
            raise ImproperlyConfigured("'model' is not specified in TEXTURE_MATCH_API")
        return cls(create_api_client(config), config['model'])

    def _complete(self, prompt):
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": "You match interior design textures and reply with JSON only."},
                    {"role": "user", "content": prompt},
                ],
            )
        except OpenAIError as e:
            raise TextureMatchError(f"AI request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise TextureMatchError("AI returned empty response content")
        return content.strip()

    def match(self, texture_name, textures, categories, style_context=None, price_level=None) -> SemanticMatch:
        """Ask the model about one texture name. Raises TextureMatchError on any failure."""
        prompt = build_texture_match_prompt(texture_name, textures, categories, style_context, price_level)
        content = self._complete(prompt)
        logger.debug(f"AI response content: {content[:200]}")

        try:
            payload = json.loads(content)
        except json.JSONDecodeError as e:
            raise TextureMatchError(f"AI response is not valid JSON: {e}") from e

        try:
            parsed = TextureMatchSchema.model_validate(payload)
        except ValidationError as e:
            raise TextureMatchError(f"AI response does not match the schema: {e}") from e

        return interpret_match(parsed, {t.id for t in textures}, {c.id for c in categories})

"""
Match context cache for texture resolution.

Holds a time-bounded snapshot of texture and material-category projections so a
batch run does not re-read the whole catalog for every descriptor. Each pipeline
owns its own cache instance; there is no process-wide snapshot.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from backend.catalog.models import MaterialCategory, Texture

logger = logging.getLogger(__name__)

# Cache TTL (Time To Live) in seconds
CONTEXT_CACHE_TTL = 300  # 5 minutes
# Upper bound on textures loaded into one snapshot
CONTEXT_TEXTURE_LIMIT = 200


@dataclass(frozen=True)
class TextureProjection:
    id: int
    name_en: str
    name_he: str
    finish: str = ''
    sheen: str = ''
    category_slug: Optional[str] = None
    category_name_en: Optional[str] = None
    category_name_he: Optional[str] = None
    organization_id: Optional[int] = None


@dataclass(frozen=True)
class CategoryProjection:
    id: int
    name_en: str
    name_he: str
    slug: str


@dataclass
class MatchContext:
    textures: List[TextureProjection] = field(default_factory=list)
    categories: List[CategoryProjection] = field(default_factory=list)
    loaded_at: float = 0.0

    def visible_textures(self, organization_id=None):
        """Global textures plus those owned by the organization; everything when unscoped"""
        if organization_id is None:
            return list(self.textures)
        return [
            texture for texture in self.textures
            if texture.organization_id is None or texture.organization_id == organization_id
        ]

    def texture_ids(self):
        return {texture.id for texture in self.textures}

    def category_ids(self):
        return {category.id for category in self.categories}


class CatalogContextReader:
    """Reads texture and category projections from the catalog"""

    def read_textures(self, limit=CONTEXT_TEXTURE_LIMIT) -> List[TextureProjection]:
        textures = (
            Texture.objects
            .prefetch_related('categories')
            .order_by('-usage', '-created_at', '-id')[:limit]
        )
        projections = []
        for texture in textures:
            categories = sorted(texture.categories.all(), key=lambda category: category.id)
            category = categories[0] if categories else None
            projections.append(TextureProjection(
                id=texture.id,
                name_en=texture.name_en,
                name_he=texture.name_he,
                finish=texture.finish or '',
                sheen=texture.sheen or '',
                category_slug=category.slug if category else None,
                category_name_en=category.name_en if category else None,
                category_name_he=category.name_he if category else None,
                organization_id=texture.organization_id,
            ))
        return projections

    def read_categories(self) -> List[CategoryProjection]:
        return [
            CategoryProjection(id=category.id, name_en=category.name_en, name_he=category.name_he, slug=category.slug)
            for category in MaterialCategory.objects.order_by('id')
        ]


class MatchContextCache:
    """
    TTL cache of the match context.

    A read failure propagates to the caller; an empty context is never
    substituted, since it would turn every lookup into a spurious "no match".
    Callers must invalidate right after creating a texture.
    """

    def __init__(self, reader=None, clock=time.monotonic, ttl=CONTEXT_CACHE_TTL, texture_limit=CONTEXT_TEXTURE_LIMIT):
        self.reader = reader or CatalogContextReader()
        self.clock = clock
        self.ttl = ttl
        self.texture_limit = texture_limit
        self._snapshot: Optional[MatchContext] = None

    def _is_fresh(self):
        return self._snapshot is not None and self.clock() - self._snapshot.loaded_at < self.ttl

    def get_context(self) -> MatchContext:
        if self._is_fresh():
            logger.debug("Match context cache hit")
            return self._snapshot

        logger.debug("Match context cache miss, loading from catalog")
        textures = self.reader.read_textures(self.texture_limit)
        categories = self.reader.read_categories()
        self._snapshot = MatchContext(textures=textures, categories=categories, loaded_at=self.clock())
        logger.info(f"Loaded match context: {len(textures)} textures, {len(categories)} categories")
        return self._snapshot

    def get(self) -> Tuple[List[TextureProjection], List[CategoryProjection]]:
        context = self.get_context()
        return context.textures, context.categories

    def invalidate(self):
        self._snapshot = None
        logger.debug("Match context cache invalidated")

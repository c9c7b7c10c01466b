"""
Material guidance parsing.

Turns the free-text material guidance written for a style (for example
"brushed oak paneling, matte wall paint") into structured descriptors the
resolver can match against the texture catalog.
"""
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Tuple

from backend.catalog.models import PriceLevel

DEFAULT_CATEGORY_SLUG = 'wall-finishes'
DEFAULT_FINISH = 'natural'
MIN_FRAGMENT_LENGTH = 4
MIN_KEYWORD_LENGTH = 4

# Scanned in order; the first keyword contained in a fragment wins
MATERIAL_TO_CATEGORY = MappingProxyType({
    # Wall finishes
    'paint': 'wall-finishes',
    'plaster': 'wall-finishes',
    'wallpaper': 'wall-finishes',
    'stucco': 'wall-finishes',
    # Wood
    'wood': 'wood-finishes',
    'oak': 'wood-finishes',
    'walnut': 'wood-finishes',
    'maple': 'wood-finishes',
    'teak': 'wood-finishes',
    'pine': 'wood-finishes',
    'mahogany': 'wood-finishes',
    'cherry': 'wood-finishes',
    'veneer': 'wood-finishes',
    # Metal
    'metal': 'metal-finishes',
    'steel': 'metal-finishes',
    'iron': 'metal-finishes',
    'brass': 'metal-finishes',
    'copper': 'metal-finishes',
    'bronze': 'metal-finishes',
    'aluminum': 'metal-finishes',
    'nickel': 'metal-finishes',
    'chrome': 'metal-finishes',
    # Fabric
    'fabric': 'fabric-textures',
    'cotton': 'fabric-textures',
    'linen': 'fabric-textures',
    'silk': 'fabric-textures',
    'velvet': 'fabric-textures',
    'leather': 'fabric-textures',
    'suede': 'fabric-textures',
    'wool': 'fabric-textures',
    # Stone
    'stone': 'stone-finishes',
    'marble': 'stone-finishes',
    'granite': 'stone-finishes',
    'limestone': 'stone-finishes',
    'travertine': 'stone-finishes',
    'concrete': 'stone-finishes',
    'terrazzo': 'stone-finishes',
})

FINISH_KEYWORDS = MappingProxyType({
    'semi-gloss': 'satin',
    'matte': 'matte',
    'flat': 'matte',
    'glossy': 'glossy',
    'gloss': 'glossy',
    'shiny': 'glossy',
    'satin': 'satin',
    'rough': 'rough',
    'textured': 'rough',
    'smooth': 'smooth',
    'polished': 'polished',
    'brushed': 'brushed',
    'natural': 'natural',
    'lacquered': 'lacquered',
    'oiled': 'oiled',
})

FRAGMENT_SEPARATORS = re.compile(r'[,;.\n]')


@dataclass(frozen=True)
class MaterialDescriptor:
    """One material mentioned in the guidance text"""
    name: str
    category_slug: str
    finish: str
    keywords: Tuple[str, ...] = field(default_factory=tuple)
    price_level: str = PriceLevel.REGULAR


def split_fragments(guidance: str) -> List[str]:
    """Lower-cased clauses of the guidance, short fragments dropped"""
    fragments = (part.strip() for part in FRAGMENT_SEPARATORS.split(guidance.lower()))
    return [part for part in fragments if len(part) >= MIN_FRAGMENT_LENGTH]


def _first_keyword(fragment, table):
    for keyword, value in table.items():
        if keyword in fragment:
            return keyword, value
    return None, None


def parse_fragment(fragment: str, price_level=PriceLevel.REGULAR):
    """Parse a single lower-cased fragment. Returns None when it names no known material."""
    material, category_slug = _first_keyword(fragment, MATERIAL_TO_CATEGORY)
    if not material:
        return None

    _, finish = _first_keyword(fragment, FINISH_KEYWORDS)

    keywords = [
        word for word in fragment.split()
        if len(word) >= MIN_KEYWORD_LENGTH
        and word not in MATERIAL_TO_CATEGORY
        and word not in FINISH_KEYWORDS
    ]

    return MaterialDescriptor(
        name=material.capitalize(),
        category_slug=category_slug or DEFAULT_CATEGORY_SLUG,
        finish=finish or DEFAULT_FINISH,
        keywords=(str(price_level), *keywords),
        price_level=str(price_level),
    )


def parse_material_guidance(guidance: str, price_level=PriceLevel.REGULAR) -> List[MaterialDescriptor]:
    """
    Parse material guidance into descriptors, in the order the materials appear.

    Fragments that mention no known material are dropped. Duplicates are kept;
    the resolver's exact-match tier takes care of repeated materials.
    """
    if not guidance or not guidance.strip():
        return []

    descriptors = []
    for fragment in split_fragments(guidance):
        descriptor = parse_fragment(fragment, price_level)
        if descriptor is not None:
            descriptors.append(descriptor)
    return descriptors

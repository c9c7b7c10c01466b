"""
Static English to Hebrew names for common materials.

Used when a texture has to be created without an AI-proposed Hebrew name.
Terms missing from the table pass through untranslated.
"""
from types import MappingProxyType

MATERIAL_TRANSLATIONS = MappingProxyType({
    'wood': 'עץ',
    'oak': 'אלון',
    'walnut': 'אגוז',
    'maple': 'מייפל',
    'teak': 'טיק',
    'pine': 'אורן',
    'mahogany': 'מהגוני',
    'metal': 'מתכת',
    'steel': 'פלדה',
    'iron': 'ברזל',
    'brass': 'פליז',
    'copper': 'נחושת',
    'bronze': 'ארד',
    'stone': 'אבן',
    'marble': 'שיש',
    'granite': 'גרניט',
    'limestone': 'אבן גיר',
    'concrete': 'בטון',
    'fabric': 'בד',
    'cotton': 'כותנה',
    'linen': 'פשתן',
    'silk': 'משי',
    'velvet': 'קטיפה',
    'leather': 'עור',
    'wool': 'צמר',
    'paint': 'צבע',
    'plaster': 'טיח',
    'wallpaper': 'טפט',
    'ceramic': 'קרמיקה',
    'porcelain': 'פורצלן',
    'glass': 'זכוכית',
})


def get_material_name_hebrew(english_name: str) -> str:
    """Hebrew name for an English material name, or the name itself when unknown"""
    name_lower = english_name.lower().strip()
    if not name_lower:
        return english_name

    if name_lower in MATERIAL_TRANSLATIONS:
        return MATERIAL_TRANSLATIONS[name_lower]

    for english, hebrew in MATERIAL_TRANSLATIONS.items():
        if english in name_lower or name_lower in english:
            return hebrew

    return english_name

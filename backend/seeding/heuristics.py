"""
Free string-similarity matching between a candidate material name and the
textures already in the match context. Used to skip the AI call when the answer
is obvious ("Brushed Oak" against an existing "Oak").
"""
import re
from dataclasses import dataclass
from typing import Optional

from .translations import get_material_name_hebrew

EXACT_SCORE = 1.0
CONTAINED_SCORE = 0.9
TRANSLATED_SCORE = 0.85
SHARED_WORD_SCORE = 0.8

FINISH_MATCH_BONUS = 0.05
CATEGORY_MISMATCH_PENALTY = 0.1

MIN_SHARED_WORD_LENGTH = 3

_WHITESPACE = re.compile(r'\s+')


@dataclass(frozen=True)
class HeuristicMatch:
    texture_id: Optional[int]
    confidence: float

    @property
    def matched(self):
        return self.texture_id is not None


def _normalize(text):
    return _WHITESPACE.sub(' ', (text or '').lower()).strip()


def _words(text):
    return set(re.findall(r'[\w-]+', text))


def similarity_score(candidate_name: str, texture) -> float:
    """
    Score in [0, 1] for how well a candidate name matches a texture projection.

    1.0 for an exact name in either language, 0.9 when one name contains the
    other as whole words, 0.85 for a cross-language match through the static
    translation table, 0.8 for a shared word, 0.0 otherwise.
    """
    candidate = _normalize(candidate_name)
    if not candidate:
        return 0.0

    name_en = _normalize(texture.name_en)
    name_he = (texture.name_he or '').strip()

    if candidate == name_en or (name_he and candidate_name.strip() == name_he):
        return EXACT_SCORE

    candidate_words = _words(candidate)
    texture_words = _words(name_en)
    if texture_words and (texture_words <= candidate_words or candidate_words <= texture_words):
        return CONTAINED_SCORE
    if name_he and name_he in candidate_name:
        return CONTAINED_SCORE

    candidate_he = get_material_name_hebrew(candidate)
    if name_he and candidate_he != candidate and candidate_he == name_he:
        return TRANSLATED_SCORE

    shared = {word for word in candidate_words & texture_words if len(word) >= MIN_SHARED_WORD_LENGTH}
    if shared:
        return SHARED_WORD_SCORE

    return 0.0


def heuristic_texture_match(candidate_name, textures, finish=None, category_slug=None, similarity=similarity_score) -> HeuristicMatch:
    """
    Best-scoring texture for a candidate name.

    The base similarity is nudged up when the texture has the same finish and
    down when it is filed under a different category. Ties keep the earlier
    texture in the context (most used first).
    """
    best_id = None
    best_score = 0.0

    for texture in textures:
        score = similarity(candidate_name, texture)
        if score <= 0:
            continue

        if category_slug and texture.category_slug and texture.category_slug != category_slug:
            score -= CATEGORY_MISMATCH_PENALTY
        elif finish and texture.finish and texture.finish == finish:
            score += FINISH_MATCH_BONUS
        score = min(1.0, max(0.0, score))

        if score > best_score:
            best_id = texture.id
            best_score = score

    return HeuristicMatch(texture_id=best_id, confidence=best_score)

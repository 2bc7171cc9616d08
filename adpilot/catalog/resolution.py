import re
from collections.abc import Sequence
from dataclasses import dataclass
from difflib import SequenceMatcher

from adpilot.catalog.models import EntityCandidate, Product
from adpilot.constants import (
    RESOLUTION_CANDIDATE_THRESHOLD,
    RESOLUTION_CONTAINS_SCORE,
    RESOLUTION_EXACT_SCORE,
    RESOLUTION_MATCH_THRESHOLD,
    RESOLUTION_MAX_CANDIDATES,
    RESOLUTION_SKU_WEIGHT,
    RESOLUTION_WORD_BONUS,
)

_WORD_RE = re.compile(r"[^\W_]+")


@dataclass(frozen=True)
class Match:
    entity: Product
    score: float


@dataclass(frozen=True)
class Ambiguous:
    query: str
    candidates: tuple[EntityCandidate, ...]


@dataclass(frozen=True)
class NotFound:
    query: str


type Resolution = Match | Ambiguous | NotFound


def normalize(text: str) -> str:
    return " ".join(text.lower().split())


def _words(text: str) -> list[str]:
    return _WORD_RE.findall(text)


def word_overlap(a: str, b: str) -> float:
    """Shared whole words divided by the word count of the longer string."""
    a_words, b_words = _words(a), _words(b)
    if not a_words or not b_words:
        return 0.0
    common = set(a_words) & set(b_words)
    return len(common) / max(len(a_words), len(b_words))


def text_similarity(a: str, b: str) -> float:
    a_norm = normalize(a)
    b_norm = normalize(b)
    if not a_norm or not b_norm:
        return 0.0

    if a_norm == b_norm:
        return RESOLUTION_EXACT_SCORE

    # Every layer is scored; the best one wins
    scores = [word_overlap(a_norm, b_norm)]
    if a_norm in b_norm or b_norm in a_norm:
        scores.append(RESOLUTION_CONTAINS_SCORE)
    if scores[0] == 0:
        scores.append(SequenceMatcher(None, a_norm, b_norm).ratio())
    return max(scores)


def score_entity(query: str, entity: Product) -> float:
    name_score = text_similarity(query, entity.name)
    sku_score = text_similarity(query, entity.sku) * RESOLUTION_SKU_WEIGHT if entity.sku else 0.0
    bonus = RESOLUTION_WORD_BONUS * word_overlap(normalize(query), normalize(entity.name))
    return min(1.0, max(name_score, sku_score) + bonus)


def rank(query: str, pool: Sequence[Product]) -> list[EntityCandidate]:
    scored = [EntityCandidate(entity=entity, score=score_entity(query, entity)) for entity in pool]
    # sorted() is stable, so catalog order breaks ties
    return sorted(scored, key=lambda c: c.score, reverse=True)


def resolve(query: str, pool: Sequence[Product]) -> Resolution:
    if not normalize(query) or not pool:
        return NotFound(query=query)

    ranked = rank(query, pool)
    best = ranked[0]
    if best.score >= RESOLUTION_MATCH_THRESHOLD:
        return Match(entity=best.entity, score=best.score)

    candidates = [c for c in ranked if c.score >= RESOLUTION_CANDIDATE_THRESHOLD][:RESOLUTION_MAX_CANDIDATES]
    if candidates:
        return Ambiguous(query=query, candidates=tuple(candidates))
    return NotFound(query=query)

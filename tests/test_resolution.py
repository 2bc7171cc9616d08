from adpilot.catalog.models import Product
from adpilot.catalog.resolution import (
    Ambiguous,
    Match,
    NotFound,
    resolve,
    score_entity,
    text_similarity,
    word_overlap,
)


def _products(*names: str) -> list[Product]:
    return [Product(id=i, name=name) for i, name in enumerate(names, 1)]


class TestTextSimilarity:
    def test_exact_match_ignores_case_and_spacing(self):
        assert text_similarity("Moringa  Shampoo", " moringa shampoo") == 1.0

    def test_containment(self):
        assert text_similarity("moringa", "Moringa Shampoo") == 0.8

    def test_word_overlap_uses_longer_string(self):
        assert word_overlap("argan repair", "argan oil serum") == 1 / 3

    def test_character_fallback_only_without_shared_words(self):
        score = text_similarity("shmapoo", "shampoo")
        assert 0.5 < score < 1.0

    def test_unrelated(self):
        assert text_similarity("xyz", "shampoo") == 0.0

    def test_empty(self):
        assert text_similarity("", "shampoo") == 0.0


class TestScoreEntity:
    def test_sku_match_is_weighted(self):
        product = Product(id=1, name="Shampoo", sku="SH-001")
        assert score_entity("sh-001", product) == 0.7

    def test_score_is_clamped(self):
        product = Product(id=1, name="Shampoo")
        assert score_entity("shampoo", product) == 1.0


class TestResolve:
    def test_exact_name_matches_with_full_score(self, catalog):
        result = resolve("Shampoo", catalog.products)
        assert isinstance(result, Match)
        assert result.entity.name == "Shampoo"
        assert result.score == 1.0

    def test_ties_keep_pool_order(self):
        pool = _products("Moringa Oil", "Moringa Oil")
        result = resolve("moringa oil", pool)
        assert isinstance(result, Match)
        assert result.entity.id == "1"

    def test_low_scores_are_not_found(self, catalog):
        assert isinstance(resolve("xyz", catalog.products), NotFound)

    def test_middle_scores_are_ambiguous(self, catalog):
        result = resolve("argan repair", catalog.products)
        assert isinstance(result, Ambiguous)
        names = [c.entity.name for c in result.candidates]
        assert names[:3] == ["Argan Oil Serum", "Repair Mask Deep", "Argan Curl Cream"]
        assert all(0.3 <= c.score < 0.5 for c in result.candidates)

    def test_ambiguous_is_capped_and_sorted(self):
        pool = _products(*(f"Alpha Item{i} Extra" for i in range(7)), "Alpha Gamma Delta Epsilon")
        result = resolve("alpha beta", pool)
        assert isinstance(result, Ambiguous)
        assert 0 < len(result.candidates) <= 5
        scores = [c.score for c in result.candidates]
        assert scores == sorted(scores, reverse=True)

    def test_empty_query_or_pool(self, catalog):
        assert isinstance(resolve("   ", catalog.products), NotFound)
        assert isinstance(resolve("shampoo", []), NotFound)

"""
Tests for near-duplicate filtering.
"""

from types import SimpleNamespace

from examforge.generation.dedup import (
    filter_near_duplicates,
    jaccard_similarity,
    text_similarity,
    tokenize,
)


def _q(text):
    return SimpleNamespace(text=text)


class TestTokenize:

    def test_tokenize_when_text_has_stop_words_and_short_words_then_drops_them(self):
        assert tokenize("What is the value of pi in a circle?") == {"value", "circle"}

    def test_tokenize_when_punctuation_then_stripped_and_lowercased(self):
        assert tokenize("Newton's LAWS, explained!") == {"newtons", "laws", "explained"}

    def test_tokenize_when_empty_or_none_then_empty_set(self):
        assert tokenize("") == frozenset()
        assert tokenize(None) == frozenset()


class TestJaccardSimilarity:

    def test_similarity_when_either_side_empty_then_zero(self):
        assert jaccard_similarity(frozenset(), frozenset({"word"})) == 0.0
        assert text_similarity("the a of", "the a of") == 0.0

    def test_similarity_when_identical_then_one(self):
        assert text_similarity("mitochondria produce energy", "energy mitochondria produce") == 1.0

    def test_similarity_when_partial_overlap_then_ratio(self):
        # {alpha, beta, gamma} vs {alpha, beta, delta}: 2 shared of 4
        assert text_similarity("alpha beta gamma", "alpha beta delta") == 0.5


class TestFilterNearDuplicates:

    def test_filter_when_similarity_above_threshold_then_dropped(self):
        # 7 shared of 10 distinct words = 0.7
        first = _q("alpha beta gamma delta epsilon zeta theta iota kappa")
        second = _q("alpha beta gamma delta epsilon zeta theta lambda")

        assert filter_near_duplicates([first, second]) == [first]

    def test_filter_when_similarity_exactly_threshold_then_kept(self):
        # 3 shared of 5 distinct words = 0.6
        first = _q("alpha beta gamma delta")
        second = _q("alpha beta gamma epsilon")

        assert text_similarity(first.text, second.text) == 0.6
        assert filter_near_duplicates([first, second]) == [first, second]

    def test_filter_when_below_threshold_then_kept(self):
        first = _q("alpha beta gamma")
        second = _q("alpha beta delta")

        assert filter_near_duplicates([first, second]) == [first, second]

    def test_filter_when_duplicates_then_first_seen_order_preserved(self):
        questions = [
            _q("cell membrane structure"),
            _q("photosynthesis light reaction"),
            _q("Cell membrane structure?"),
            _q("krebs cycle enzymes"),
        ]

        result = filter_near_duplicates(questions)

        assert [q.text for q in result] == [
            "cell membrane structure",
            "photosynthesis light reaction",
            "krebs cycle enzymes",
        ]

    def test_filter_when_run_on_own_output_then_idempotent(self):
        questions = [
            _q("alpha beta gamma delta"),
            _q("alpha beta gamma delta epsilon"),
            _q("alpha beta gamma epsilon"),
            _q("zeta theta iota"),
            _q("zeta theta iota kappa lambda"),
        ]

        once = filter_near_duplicates(questions)

        assert filter_near_duplicates(once) == once

    def test_filter_when_texts_have_no_significant_words_then_all_kept(self):
        questions = [_q("is it?"), _q("is it?")]

        assert len(filter_near_duplicates(questions)) == 2

    def test_filter_when_custom_key_then_used(self):
        items = [{"body": "alpha beta gamma"}, {"body": "alpha beta gamma"}]

        assert len(filter_near_duplicates(items, key=lambda d: d["body"])) == 1

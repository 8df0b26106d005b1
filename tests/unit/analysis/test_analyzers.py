"""Unit tests for the text normalization pipeline."""

import pytest

from page_index.analysis import (
    STOPWORDS,
    MaxLengthFilter,
    PunctuationStripTokenizer,
    StopFilter,
    Token,
    build_normalizer,
    get_normalizer,
    normalize,
)
from page_index.domain.errors import InvalidInputError


pytestmark = pytest.mark.unit


class TestNormalize:
    def test_stopwords_removed_and_positions_follow_survivors(self):
        tokens = list(get_normalizer().tokens("the quick fox"))

        assert [token.text for token in tokens] == ["quick", "fox"]
        assert [token.position for token in tokens] == [0, 1]

    def test_sentence_keeps_only_content_words(self):
        assert list(normalize("The cat sat on the mat")) == ["cat", "sat", "mat"]

    def test_stems_inflected_forms(self):
        assert list(normalize("running")) == ["run"]

    def test_token_longer_than_fifty_characters_is_dropped(self):
        assert list(normalize("a" * 51)) == []
        assert len(list(normalize("b" * 50))) == 1

    def test_empty_text_yields_nothing(self):
        assert list(normalize("")) == []
        assert list(normalize("   \n\t ")) == []

    def test_punctuation_only_tokens_vanish(self):
        assert list(normalize("... --- !!! cat")) == ["cat"]

    def test_punctuation_is_stripped_before_stopword_check(self):
        # "don't" -> "dont", which is itself a stopword
        assert list(normalize("don't panic")) == ["panic"]

    def test_stopword_check_is_case_insensitive(self):
        assert list(normalize("THE Cat")) == ["cat"]

    def test_stopword_check_uses_pre_stem_form(self):
        # "goings" is not a stopword even though it stems to "go", which is.
        assert "goings" not in STOPWORDS
        assert "go" in STOPWORDS
        assert list(normalize("goings")) == ["go"]

    def test_is_deterministic(self):
        text = "Crawlers revisit stale pages, indexing their words again."
        assert list(normalize(text)) == list(normalize(text))

    def test_result_is_consumed_once(self):
        stems = normalize("quick brown fox")
        assert list(stems) == ["quick", "brown", "fox"]
        assert list(stems) == []

    @pytest.mark.parametrize("value", [None, 42, b"bytes", ["cat"]])
    def test_non_text_input_is_rejected_immediately(self, value):
        with pytest.raises(InvalidInputError):
            normalize(value)


class TestPipelinePieces:
    def test_tokenizer_strips_punctuation_and_splits(self):
        tokens = list(PunctuationStripTokenizer()("Hello, world! it's"))
        assert [token.text for token in tokens] == ["Hello", "world", "its"]

    def test_stop_filter_with_custom_vocabulary(self):
        tokens = [Token(text="alpha", position=0), Token(text="beta", position=1)]
        assert [token.text for token in StopFilter({"alpha"})(tokens)] == ["beta"]

    def test_max_length_filter_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            MaxLengthFilter(0)

    def test_stem_filter_keeps_surface_form(self):
        token = next(build_normalizer().tokens("Running"))
        assert token.text == "run"
        assert token.attributes["surface"] == "running"

    def test_nostem_normalizer_keeps_inflection(self):
        assert list(get_normalizer("english-nostem")("running dogs")) == ["running", "dogs"]

    def test_custom_max_word_length(self):
        normalizer = get_normalizer(max_word_length=5)
        assert list(normalizer("short lengthy")) == ["short"]

    def test_unknown_normalizer_name(self):
        with pytest.raises(ValueError, match="Unknown normalizer"):
            get_normalizer("klingon")

"""Tests for tokenization, part-of-speech reduction and stemming."""

from dataclasses import dataclass

from dexai.core.classification_types import Mode
from dexai.nlp.text_preprocessor import TextPreprocessor


@dataclass
class FakeToken:
    text: str
    pos_: str


POS_TAGS = {
    "how": "ADV",
    "does": "AUX",
    "pikachu": "PROPN",
    "evolve": "VERB",
    "are": "AUX",
    "you": "PRON",
    "evolutions": "NOUN",
    "pokemon": "PROPN",
}


def fake_nlp(text):
    return [FakeToken(word, POS_TAGS.get(word, "X")) for word in text.split()]


class CountingLoader:
    def __init__(self, result=fake_nlp, error=None):
        self.result = result
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


def test_tokenize_lowercases_and_drops_punctuation(preprocessor):
    assert preprocessor.tokenize("Charizard's HP, please!") == ["charizard", "s", "hp", "please"]
    assert preprocessor.tokenize("") == []


def test_stem(preprocessor):
    assert preprocessor.stem("running") == "run"
    assert preprocessor.stem("stats") == "stat"


def test_fast_mode_skips_reduction_and_stemming():
    loader = CountingLoader()
    processor = TextPreprocessor(nlp_loader=loader)
    assert processor.preprocess("How does Pikachu evolve", Mode.FAST) == ["how", "does", "pikachu", "evolve"]
    assert loader.calls == 0


def test_balanced_mode_reduces_and_stems():
    processor = TextPreprocessor(nlp_loader=CountingLoader())
    expected = [processor.stem(word) for word in ("pikachu", "evolve")]
    assert processor.preprocess("How does Pikachu evolve", Mode.BALANCED) == expected


def test_reduction_keeps_text_when_nothing_survives():
    processor = TextPreprocessor(nlp_loader=CountingLoader())
    assert processor.reduce_parts_of_speech("how are you") == "how are you"


def test_missing_model_disables_reduction_once():
    loader = CountingLoader(error=OSError("no model"))
    processor = TextPreprocessor(nlp_loader=loader)

    assert processor.pos_filter_available is False
    assert processor.reduce_parts_of_speech("how does pikachu evolve") == "how does pikachu evolve"
    processor.preprocess("pokemon evolutions", Mode.QUALITY)
    assert loader.calls == 1


def test_unexpected_loader_error_also_disables_reduction():
    processor = TextPreprocessor(nlp_loader=CountingLoader(error=RuntimeError("broken install")))
    assert processor.pos_filter_available is False


def test_tagging_error_returns_text_unchanged():
    def exploding_nlp(text):
        raise RuntimeError("tagger crashed")

    processor = TextPreprocessor(nlp_loader=CountingLoader(result=exploding_nlp))
    assert processor.reduce_parts_of_speech("pikachu evolve") == "pikachu evolve"


def test_balanced_without_spacy_still_stems(preprocessor):
    tokens = preprocessor.preprocess("Pokemon evolutions", Mode.BALANCED)
    assert tokens == [preprocessor.stem("pokemon"), preprocessor.stem("evolutions")]


def test_non_string_input(preprocessor):
    assert preprocessor.preprocess(None, Mode.BALANCED) == []
    assert preprocessor.preprocess(["pikachu"], Mode.FAST) == []

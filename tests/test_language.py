from article_reader.schemas.article import Language
from article_reader.services.language import detect_language


def test_swedish_function_words() -> None:
    assert detect_language("Det är bra och kan " * 2) == Language.SV


def test_english_text() -> None:
    assert detect_language("The quick brown fox jumps") == Language.EN


def test_threshold_requires_more_than_five_hits() -> None:
    # "och" x5 is exactly five hits
    assert detect_language("och och och och och") == Language.EN
    assert detect_language("och och och och och och") == Language.SV


def test_swedish_letters_count() -> None:
    assert detect_language("Smörgåsbord på bordet är också här") == Language.SV


def test_words_must_match_whole() -> None:
    # "Attention", "Denver" and "Medium" contain Swedish words only as substrings
    assert detect_language("Attention Denver Medium Detroit Varsity Kansas") == Language.EN


def test_case_insensitive() -> None:
    assert detect_language("OCH ATT DET SOM MED FÖR") == Language.SV


def test_only_first_thousand_characters_are_sampled() -> None:
    text = "x" * 1000 + " och att det är på för med"
    assert detect_language(text) == Language.EN


def test_empty_text_defaults_to_english() -> None:
    assert detect_language("") == Language.EN

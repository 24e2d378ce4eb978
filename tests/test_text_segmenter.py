import re

import pytest

from article_reader.services.text_segmenter import split_into_chunks, split_sentences


def test_sentences_keep_their_punctuation() -> None:
    text = "This is a long sentence one. This is sentence two! Is this sentence three?"

    assert split_sentences(text) == [
        "This is a long sentence one.",
        "This is sentence two!",
        "Is this sentence three?",
    ]


def test_small_budget_produces_several_chunks() -> None:
    text = "This is a long sentence one. This is sentence two! Is this sentence three?"

    chunks = split_into_chunks(text, max_chars=40)

    assert len(chunks) >= 2
    assert all(chunk for chunk in chunks)
    assert all(chunk[-1] in ".!?" for chunk in chunks)


def test_chunks_respect_bound_and_preserve_text() -> None:
    sentences = [f"Sentence number {i} talks about topic {i * 7}." for i in range(40)]
    text = " ".join(sentences)

    chunks = split_into_chunks(text, max_chars=120)

    assert all(len(chunk) <= 120 for chunk in chunks)
    assert " ".join(chunks) == text


def test_sentences_are_packed_greedily() -> None:
    chunks = split_into_chunks("Aaaa. Bbbb. Cccc. Dddd.", max_chars=11)

    assert chunks == ["Aaaa. Bbbb.", "Cccc. Dddd."]


def test_oversized_sentence_is_kept_whole() -> None:
    long_sentence = "This sentence is " + "very " * 30 + "long."
    text = f"Short start. {long_sentence} Short end."

    chunks = split_into_chunks(text, max_chars=50)

    assert chunks == ["Short start.", long_sentence, "Short end."]


def test_whitespace_is_normalized_between_sentences() -> None:
    chunks = split_into_chunks("One.\n\n  Two!\tThree?", max_chars=500)

    assert chunks == ["One. Two! Three?"]


def test_text_without_terminal_punctuation_is_one_sentence() -> None:
    assert split_into_chunks("no punctuation here", max_chars=500) == ["no punctuation here"]


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_empty_input_yields_no_chunks(text) -> None:
    assert split_into_chunks(text) == []


def test_invalid_budget_raises() -> None:
    with pytest.raises(ValueError):
        split_into_chunks("Hello.", max_chars=0)


def test_default_budget_is_five_hundred() -> None:
    text = " ".join(["A sentence of moderate length for testing."] * 60)

    chunks = split_into_chunks(text)

    assert len(chunks) > 1
    assert all(len(chunk) <= 500 for chunk in chunks)
    assert not any(re.search(r"\s{2,}", chunk) for chunk in chunks)

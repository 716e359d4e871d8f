import pytest

from brixshield.app.similarity import levenshtein, similarity


def test_levenshtein_known_values():
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("flaw", "lawn") == 2
    assert levenshtein("", "abc") == 3
    assert levenshtein("abc", "") == 3
    assert levenshtein("same", "same") == 0


def test_similarity_lookalike_domain():
    assert similarity("paypal.com", "paypaI.com") == pytest.approx(0.9)
    assert similarity("paypal.com", "paypaI.com") == similarity("paypaI.com", "paypal.com")


@pytest.mark.parametrize("value", ["a", "google.com", "xn--bcher-kva.example", "paypaI.com"])
def test_similarity_identity(value):
    assert similarity(value, value) == 1.0


def test_similarity_empty_strings():
    assert similarity("", "") == 1.0
    assert similarity("abc", "") == 0.0
    assert similarity("", "abc") == 0.0


@pytest.mark.parametrize("a,b", [
    ("google.com", "gooogle.com"),
    ("amazon.com", "amaz0n.co"),
    ("ab", "ba"),
    ("facebook.com", "faceb00k.net"),
    ("microsoft.com", "rnicrosoft.com"),
])
def test_similarity_is_symmetric(a, b):
    assert similarity(a, b) == similarity(b, a)
    assert 0.0 <= similarity(a, b) < 1.0

import pytest

from merchant_taxonomy.taxonomy.normalize import extract_keywords, slugify


@pytest.mark.parametrize("name, expected", [
    ("Health & Beauty", "health-and-beauty"),
    ("Goods", "goods"),
    ("  Spa / Salon  ", "spa-salon"),
    ("Hair_Removal -- Laser", "hair-removal-laser"),
    ("__Nail__Art__", "nail-art"),
    ("Nail   Art - - Gel", "nail-art-gel"),
    ("Botox (Injectables)", "botox-injectables"),
    ("Café", "caf"),
    ("---", ""),
])
def test_slugify_cases(name, expected):
    assert slugify(name) == expected


@pytest.mark.parametrize("name", [
    "Health & Beauty", "Sexual Wellness", "Hair_Removal -- Laser", "  Spa / Salon  ", "A&B&C",
])
def test_slugify_is_idempotent(name):
    once = slugify(name)
    assert slugify(once) == once


def test_extract_keywords_drops_short_words_and_stopwords():
    kw = extract_keywords("Massage for the Back and Neck (Deep Tissue)")
    assert kw == {"massage", "back", "neck", "deep", "tissue"}


def test_extract_keywords_splits_on_slash_and_hyphen():
    assert extract_keywords("Spa/Salon - Nail-Art") == {"spa", "salon", "nail", "art"}


def test_extract_keywords_idempotent_and_order_independent():
    kw = extract_keywords("Teeth Whitening with Laser Treatment")
    assert extract_keywords(" ".join(sorted(kw))) == kw
    assert extract_keywords(" ".join(sorted(kw, reverse=True))) == kw
    assert extract_keywords("Laser Treatment Teeth Whitening") == kw


def test_extract_keywords_empty():
    assert extract_keywords("") == frozenset()
    assert extract_keywords("a & b") == frozenset()

from __future__ import annotations

import inspect
from collections import Counter

import pytest

from utils import field_extractor as fx


@pytest.mark.parametrize("raw", [None, "", "   ", "[]"])
def test_empty_values_yield_nothing(raw):
    assert fx.extract_all(raw, fx.SPECIALITIES) == []
    assert fx.extract_all(raw, fx.LOCATIONS) == []


def test_extract_is_lazy():
    gen = fx.extract('["AI"]', fx.SPECIALITIES)
    assert inspect.isgenerator(gen)
    assert next(gen).specialty == "AI"


def test_array_of_scalar_trims_and_drops_blanks():
    rows = fx.extract_all('["  AI  ", "", "   ", "Cloud", 42, true]', fx.SPECIALITIES)
    assert [r.specialty for r in rows] == ["AI", "Cloud", "42", "true"]


def test_array_of_scalar_skips_nested_elements():
    stats = Counter()
    rows = fx.extract_all('["AI", {"x": 1}, ["nested"], null, "Cloud"]', fx.SPECIALITIES, stats=stats)
    assert [r.specialty for r in rows] == ["AI", "Cloud"]
    assert stats["skipped_elements"] == 2


def test_invalid_json_yields_nothing_and_is_counted():
    stats = Counter()
    assert fx.extract_all('["AI", "Cloud"', fx.SPECIALITIES, stats=stats) == []
    assert stats["invalid_json"] == 1


def test_wrong_top_level_type_yields_nothing():
    stats = Counter()
    assert fx.extract_all('{"country": "US"}', fx.LOCATIONS, stats=stats) == []
    assert fx.extract_all('"just text"', fx.SPECIALITIES, stats=stats) == []
    assert stats["wrong_top_level"] == 2


def test_array_of_object_skips_bad_elements_and_nulls_bad_fields():
    raw = '[1, "x", {"country": "US", "city": {"name": "Austin"}, "is_hq": true}, {"city": "Berlin"}]'
    stats = Counter()
    rows = fx.extract_all(raw, fx.LOCATIONS, stats=stats)

    assert len(rows) == 2
    assert rows[0].country == "US"
    assert rows[0].city is None
    assert rows[0].is_hq == "true"
    assert rows[1].country is None
    assert rows[1].city == "Berlin"
    assert stats["skipped_elements"] == 2


def test_rows_expose_every_declared_field():
    rows = fx.extract_all('[{"country": "US"}]', fx.LOCATIONS)
    assert rows[0]._fields == fx.LOCATIONS.field_names
    assert rows[0].postal_code is None


def test_updates_nested_posted_on_parts():
    raw = (
        '[{"article_link": " https://x.example/1 ", "posted_on": {"day": "5", "month": 3, "year": 2024},'
        ' "text": "hi", "total_likes": "1,204"},'
        ' {"posted_on": {"day": "abc"}, "total_likes": 2.5}]'
    )
    first, second = fx.extract_all(raw, fx.UPDATES)

    assert first.article_link == "https://x.example/1"
    assert (first.year, first.month, first.day) == (2024, 3, 5)
    assert first.total_likes == 1204
    assert first.image is None

    assert (second.year, second.month, second.day) == (None, None, None)
    assert second.total_likes is None


def test_scalar_descriptor_reads_plain_text():
    assert fx.extract_all("  Privately Held ", fx.COMPANY_TYPE) == [("Privately Held",)]
    assert fx.extract_all("   ", fx.INDUSTRY) == []


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("[51, 200]", [(51, 200)]),
        ("[10001, null]", [(10001, None)]),
        ('["11", "50"]', [(11, 50)]),
        ("[]", []),
        ("[null, null]", []),
        ('{"min": 1}', []),
    ],
)
def test_company_size_pair(raw, expected):
    assert [tuple(r) for r in fx.extract_all(raw, fx.COMPANY_SIZE)] == expected


def test_decoded_values_pass_through():
    rows = fx.extract_all([{"name": "Globex"}], fx.SIMILAR_COMPANIES)
    assert rows[0].name == "Globex"
    assert rows[0].link is None


def test_descriptor_validation():
    with pytest.raises(ValueError):
        fx.ShapeDescriptor(name="empty", shape=fx.Shape.ARRAY_OF_OBJECT, fields=())
    with pytest.raises(ValueError):
        fx.ShapeDescriptor(
            name="pair",
            shape=fx.Shape.SCALAR_PAIR,
            fields=(fx.FieldPath("only", (0,), fx.INT),),
        )
    with pytest.raises(ValueError):
        fx.ShapeDescriptor(
            name="bad_kind",
            shape=fx.Shape.ARRAY_OF_SCALAR,
            fields=(fx.FieldPath("v", (), "float"),),
        )


def test_descriptors_keyed_by_column():
    assert set(fx.DESCRIPTORS) == {
        "specialities",
        "company_type",
        "industry",
        "company_size",
        "locations",
        "updates",
        "affiliated_companies",
        "similar_companies",
    }


def test_deeply_nested_json_is_treated_as_invalid():
    stats = Counter()
    raw = "[" * 100000 + "]" * 100000

    assert fx.extract_all(raw, fx.SPECIALITIES, stats=stats) == []
    assert stats["invalid_json"] == 1

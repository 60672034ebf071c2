import json

import pytest

from bizscout.etl import normalizer
from bizscout.models import CrossReference

EXAMPLE = '```json\n[{"name":"Cafe A","lat":10.77,"lng":106.70,"rating":4.5}]\n```'


def _items(count):
    return [
        {
            "name": f"Shop {i}",
            "address": f"{i} Le Loi",
            "lat": 10.7 + i / 100,
            "lng": 106.6 + i / 100,
            "rating": 4,
            "reviewCount": i * 10,
            "types": ["cafe", "bakery"],
            "openingHours": ["Mon: 8-17"],
        }
        for i in range(count)
    ]


def test_normalize_reference_example():
    businesses = normalizer.normalize(EXAMPLE, "coffee", "D1", [])

    assert len(businesses) == 1
    business = businesses[0]
    assert business.name == "Cafe A"
    assert business.address == "D1"
    assert business.rating == 4.5
    assert business.review_count == 0
    assert business.business_status == "OPERATIONAL"
    assert business.types == ("coffee",)
    assert "Cafe%20A%20D1" in business.google_maps_uri
    assert business.id.startswith("biz-")


def test_normalize_one_record_per_item_with_unique_ids():
    items = _items(12)
    businesses = normalizer.normalize(json.dumps(items), "coffee", "D1")

    assert [b.name for b in businesses] == [item["name"] for item in items]
    ids = [b.id for b in businesses]
    assert all(ids)
    assert len(set(ids)) == len(ids)


def test_normalize_ignores_source_ids():
    text = json.dumps([{"name": "A", "id": "dup"}, {"name": "B", "id": "dup"}])
    businesses = normalizer.normalize(text, "coffee", "D1")
    assert len({b.id for b in businesses}) == 2
    assert all(b.id != "dup" for b in businesses)


def test_normalize_recovers_fenced_truncated_payload():
    items = _items(3)
    full = json.dumps(items)
    truncated = "```json\n" + full[: full.rfind("]")] + "\n```"

    result = normalizer.normalize_result(truncated, "coffee", "D1")

    assert result.recovered is True
    assert result.repaired is True
    assert [b.name for b in result.businesses] == ["Shop 0", "Shop 1", "Shop 2"]


@pytest.mark.parametrize(
    "raw_text",
    [
        "no data available",
        '{"name": "Cafe A"}',
        "3.14",
        '"just a string"',
        "",
        None,
        '[{"name": "A"}, {"name": "B", "ra',
    ],
)
def test_normalize_returns_empty_for_unrecoverable_input(raw_text):
    assert normalizer.normalize(raw_text, "coffee", "D1", []) == []
    assert normalizer.normalize_result(raw_text, "coffee", "D1").recovered is False


def test_normalize_result_distinguishes_empty_array():
    result = normalizer.normalize_result("Sorry, nothing found: []", "coffee", "D1")
    assert result.recovered is True
    assert result.businesses == []


def test_normalize_skips_non_object_items():
    businesses = normalizer.normalize('[{"name": "A"}, null, "B", 4]', "coffee", "D1")
    assert [b.name for b in businesses] == ["A"]


def test_normalize_accepts_mapping_cross_refs():
    refs = [{"title": "cafe a - saigon", "uri": "https://maps/a"}]
    businesses = normalizer.normalize(EXAMPLE, "coffee", "D1", refs)
    assert businesses[0].google_maps_uri == "https://maps/a"


def test_normalize_is_idempotent_on_normalized_output():
    refs = [CrossReference(title="Shop 1 HQ", uri="https://maps/shop-1")]
    raw = _items(3) + [
        {"name": "Closed Cafe", "businessStatus": "CLOSED", "rating": "bad", "serviceOptions": {"takeout": True}}
    ]
    first = normalizer.normalize(json.dumps(raw), "coffee", "D1", refs)
    second = normalizer.normalize(json.dumps([b.to_dict() for b in first]), "coffee", "D1", refs)

    assert len(first) == len(second)
    for before, after in zip(first, second):
        lhs = before.to_dict()
        rhs = after.to_dict()
        lhs.pop("id")
        rhs.pop("id")
        assert lhs == rhs
        assert before.id != after.id


def test_normalize_string_review_counts_keep_sign_and_decimal():
    text = '[{"name":"A","reviewCount":"12.7"},{"name":"B","reviewCount":"-5"},{"name":"C","reviewCount":"2,048"}]'
    businesses = normalizer.normalize(text, "coffee", "D1")
    assert [b.review_count for b in businesses] == [12, 0, 2048]


def test_normalize_deeply_nested_input_returns_empty():
    assert normalizer.normalize("[" * 100000, "coffee", "D1") == []
    assert normalizer.normalize_result("[" * 100000, "coffee", "D1").recovered is False


def test_normalize_repairs_truncation_after_nested_list_in_last_record():
    # The last ']' closes the final record's "types" list, not the array.
    text = '[{"name": "Cafe A", "types": ["cafe"]}, {"name": "Cafe B", "types": ["bakery", "cafe"]}'

    result = normalizer.normalize_result(text, "coffee", "D1")

    assert result.repaired is True
    assert [b.name for b in result.businesses] == ["Cafe A", "Cafe B"]
    assert result.businesses[1].types == ("bakery", "cafe")

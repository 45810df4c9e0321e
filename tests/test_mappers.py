import logging

import pytest

from renohub.domain.models import InteractionFlags
from renohub.infrastructure.mappers import (
    ForumMapper,
    InspirationMapper,
    ListEncoding,
    ProviderMapper,
    classify_list_column,
    parse_gallery,
    parse_tags,
    parse_timestamp,
)

from helpers import feed_row


def test_classify_list_column():
    assert classify_list_column(["a"]) is ListEncoding.NATIVE
    assert classify_list_column('["a"]') is ListEncoding.JSON_TEXT
    assert classify_list_column(None) is ListEncoding.ABSENT
    assert classify_list_column(42) is ListEncoding.ABSENT


def test_gallery_native_list():
    assert parse_gallery(["one.jpg", "two.jpg"], "hero.jpg") == ["one.jpg", "two.jpg"]


def test_gallery_json_string():
    assert parse_gallery('["one.jpg", "two.jpg"]', "hero.jpg") == ["one.jpg", "two.jpg"]


def test_gallery_absent_falls_back_to_hero():
    assert parse_gallery(None, "hero.jpg") == ["hero.jpg"]


def test_gallery_malformed_json_falls_back_and_logs(caplog):
    with caplog.at_level(logging.WARNING):
        gallery = parse_gallery("[not json", "hero.jpg")

    assert gallery == ["hero.jpg"]
    assert "gallery_images" in caplog.text


def test_gallery_json_object_falls_back():
    assert parse_gallery('{"a": 1}', "hero.jpg") == ["hero.jpg"]


def test_tags_fall_back_to_empty():
    assert parse_tags(None) == []
    assert parse_tags("oops") == []
    assert parse_tags('["modern", 3, ""]') == ["modern"]


def test_parse_timestamp():
    parsed = parse_timestamp("2024-03-01T10:00:00Z")
    assert parsed.year == 2024
    assert parsed.tzinfo is not None
    assert parse_timestamp(None) is None
    assert parse_timestamp("yesterday") is None


@pytest.mark.parametrize("value, microsecond", [
    ("2024-03-01T10:00:00.5+00:00", 500000),
    ("2024-03-01T10:00:00.12Z", 120000),
    ("2024-03-01T10:00:00.1234+00:00", 123400),
    ("2024-03-01T10:00:00.12345+00:00", 123450),
    ("2024-03-01T10:00:00.123456789+00:00", 123456),
])
def test_parse_timestamp_trimmed_fractions(value, microsecond):
    parsed = parse_timestamp(value)

    assert parsed is not None
    assert parsed.microsecond == microsecond
    assert parsed.utcoffset().total_seconds() == 0


def test_inspiration_row_to_item():
    row = feed_row(
        "a", "p1",
        gallery_images='["g1.jpg"]',
        collect_count=None,
        like_count=3,
        pinned=True,
        is_featured=True,
        currency_code=None,
    )
    flags = InteractionFlags(is_collected=True, is_following=True, personalization_score=2.5)

    item = InspirationMapper.to_domain(row, flags, default_currency="USD")

    assert item.id == "a"
    assert item.gallery == ["g1.jpg"]
    assert item.stats.collects == 0
    assert item.stats.likes == 3
    assert item.pinned and item.featured
    assert item.currency == "USD"
    assert item.is_collected is True
    assert item.is_liked is False
    assert item.provider.id == "p1"
    assert item.provider.company_name == "Acme Reno"
    assert item.provider.rating == 4.5
    assert item.provider.review_count == 12
    assert item.provider.is_following is True
    assert item.personalization_score == 2.5


def test_inspiration_row_missing_optional_columns():
    row = {"id": "a", "provider_id": "p1"}

    item = InspirationMapper.to_domain(row, InteractionFlags())

    assert item.title == ""
    assert item.hero_image == ""
    assert item.gallery == []
    assert item.tags == []
    assert item.price_min is None
    assert item.created_at is None


def test_message_row_with_joined_users():
    row = {
        "id": "m1", "sender_id": "u1", "receiver_id": "u2", "content": "hi",
        "sender": {"username": "alice", "avatar_url": "a.png"},
        "receiver": None,
    }

    message = ForumMapper.to_message(row)

    assert message.sender_username == "alice"
    assert message.receiver_username is None
    assert message.is_participant("u2")
    assert not message.is_participant("u3")


def test_provider_profile_defaults():
    profile = ProviderMapper.to_provider_profile({
        "id": "p1",
        "company_name": "Acme",
        "price_range": '{"min": "100", "max": 500}',
        "services": [{"id": 7, "name": "Tiling", "key": "tiling"}, "junk"],
        "portfolios": [{"id": "x", "title": "Loft", "imageUrl": "l.jpg", "projectYear": 2022}],
    })

    assert profile.price_range.min == 100.0
    assert profile.price_range.currency == "HKD"
    assert [s.name for s in profile.services] == ["Tiling"]
    assert profile.services[0].id == "7"
    assert profile.portfolios[0].project_year == 2022
    assert profile.social_links.website is None


def test_review_reviewer_fallback():
    review = ProviderMapper.to_provider_review({
        "id": "r1", "provider_id": "p1", "reviewer_id": "u1",
        "overall_rating": 4, "reviewer": None,
    })

    assert review.reviewer_name == "Anonymous"
    assert review.overall_rating == 4.0

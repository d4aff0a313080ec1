from datetime import datetime, timezone

import pytest

from conftest import make_item
from instagram_feed.media_parser import parse_item, parse_timestamp
from instagram_feed.models import MediaType


def test_parse_image():
    entry = parse_item(make_item(1))

    assert entry.id == "media-1"
    assert entry.type == MediaType.IMAGE
    assert entry.is_image
    assert entry.url == "https://cdn.example.com/1.jpg"
    assert entry.permalink == "https://www.instagram.com/p/1/"
    assert entry.caption == "post 1"
    assert entry.timestamp == datetime(2024, 1, 1, 0, 1, tzinfo=timezone.utc)
    assert entry.children == []


def test_parse_video_keeps_thumbnail():
    entry = parse_item(make_item(2, "VIDEO"))

    assert entry.is_video
    assert entry.url == "https://cdn.example.com/2.mp4"
    assert entry.thumbnail_url == "https://cdn.example.com/2-thumb.jpg"


def test_video_without_media_url_falls_back_to_thumbnail():
    entry = parse_item(make_item(2, "VIDEO", media_url=None))

    assert entry.url == "https://cdn.example.com/2-thumb.jpg"


def test_video_ignored_when_requested():
    assert parse_item(make_item(2, "VIDEO"), ignore_video=True) is None
    assert parse_item(make_item(2), ignore_video=True) is not None


def test_parse_carousel_children():
    raw = make_item(
        3,
        "CAROUSEL_ALBUM",
        children={
            "data": [
                {"id": "c1", "media_type": "IMAGE", "media_url": "https://cdn.example.com/c1.jpg"},
                {"id": "c2", "media_type": "VIDEO", "media_url": "https://cdn.example.com/c2.mp4"},
                {"id": "c3", "media_type": "IMAGE"},
                "garbage",
            ]
        },
    )

    entry = parse_item(raw)

    assert entry.is_carousel
    assert [child.id for child in entry.children] == ["c1", "c2"]
    assert entry.children[0].timestamp == entry.timestamp
    assert entry.children[0].permalink == entry.permalink


def test_carousel_drops_video_children_when_ignoring_video():
    raw = make_item(
        3,
        "CAROUSEL_ALBUM",
        children={
            "data": [
                {"id": "c1", "media_type": "VIDEO", "media_url": "https://cdn.example.com/c1.mp4"},
                {"id": "c2", "media_type": "IMAGE", "media_url": "https://cdn.example.com/c2.jpg"},
            ]
        },
    )

    entry = parse_item(raw, ignore_video=True)

    assert [child.id for child in entry.children] == ["c2"]


def test_carousel_url_falls_back_to_first_child():
    raw = make_item(
        3,
        "CAROUSEL_ALBUM",
        media_url=None,
        children={"data": [{"id": "c1", "media_type": "IMAGE", "media_url": "https://cdn.example.com/c1.jpg"}]},
    )

    assert parse_item(raw).url == "https://cdn.example.com/c1.jpg"


def test_carousel_without_any_url_is_rejected():
    raw = make_item(3, "CAROUSEL_ALBUM", media_url=None, children={"data": []})

    assert parse_item(raw) is None


def test_missing_caption_and_permalink_default_to_empty():
    raw = make_item(4)
    del raw["caption"]
    del raw["permalink"]

    entry = parse_item(raw)

    assert entry.caption == ""
    assert entry.permalink == ""


def test_numeric_id_is_stringified():
    assert parse_item(make_item(5, id=17900000000)).id == "17900000000"


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "not a dict",
        [],
        {},
        make_item(1, media_type=None),
        make_item(1, media_type="STORY"),
        make_item(1, media_type=["IMAGE"]),
        make_item(1, id=None),
        make_item(1, id=""),
        make_item(1, timestamp=None),
        make_item(1, timestamp="not a date"),
        make_item(1, media_url=""),
    ],
)
def test_malformed_records_are_rejected(raw):
    assert parse_item(raw) is None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-03-05T10:20:30+0000", datetime(2024, 3, 5, 10, 20, 30, tzinfo=timezone.utc)),
        ("2024-03-05T10:20:30+00:00", datetime(2024, 3, 5, 10, 20, 30, tzinfo=timezone.utc)),
        ("2024-03-05T10:20:30Z", datetime(2024, 3, 5, 10, 20, 30, tzinfo=timezone.utc)),
        ("2024-03-05T10:20:30", datetime(2024, 3, 5, 10, 20, 30, tzinfo=timezone.utc)),
        ("2024-03-05T12:20:30+0200", datetime(2024, 3, 5, 10, 20, 30, tzinfo=timezone.utc)),
    ],
)
def test_parse_timestamp(value, expected):
    assert parse_timestamp(value) == expected


@pytest.mark.parametrize("value", [None, "", 1709634030, "05/03/2024"])
def test_parse_timestamp_invalid(value):
    assert parse_timestamp(value) is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"media_url": {"u": 1}},
        {"media_url": 123, "thumbnail_url": None},
        {"media_url": None, "thumbnail_url": ["x"]},
        {"id": {"nested": "id"}},
        {"id": ["media-1"]},
        {"id": True},
    ],
)
def test_wrongly_typed_fields_reject_the_record(overrides):
    assert parse_item(make_item(1, **overrides)) is None


def test_wrongly_typed_thumbnail_is_dropped():
    entry = parse_item(make_item(1, thumbnail_url=123))

    assert entry.url == "https://cdn.example.com/1.jpg"
    assert entry.thumbnail_url is None


def test_wrongly_typed_media_url_falls_back_to_thumbnail():
    entry = parse_item(make_item(1, "VIDEO", media_url=42))

    assert entry.url == "https://cdn.example.com/1-thumb.jpg"


@pytest.mark.parametrize(
    "children",
    [
        "not a container",
        ["c1"],
        {"data": "not a list"},
        {"data": [None, 5, "c1", ["IMAGE"]]},
        {"data": [{"id": "c1", "media_type": "IMAGE", "media_url": 5}]},
        {"data": [{"id": "c1", "media_type": {"t": 1}, "media_url": "https://cdn.example.com/c1.jpg"}]},
    ],
)
def test_wrongly_typed_children_are_dropped(children):
    entry = parse_item(make_item(3, "CAROUSEL_ALBUM", children=children))

    assert entry.id == "media-3"
    assert entry.children == []


def test_child_with_wrongly_typed_id_and_thumbnail():
    raw = make_item(
        3,
        "CAROUSEL_ALBUM",
        children={
            "data": [
                {
                    "id": {"x": 1},
                    "media_type": "IMAGE",
                    "media_url": "https://cdn.example.com/c1.jpg",
                    "thumbnail_url": 7,
                }
            ]
        },
    )

    child = parse_item(raw).children[0]

    assert child.id == ""
    assert child.thumbnail_url is None

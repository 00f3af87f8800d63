from __future__ import annotations

from datetime import datetime, timezone

import pytest

from mongo_tracker.operations import Filter
from mongo_tracker.patch import (
    AppendEach,
    Combine,
    RemoveAll,
    ReplaceField,
    SetCurrentTimestamp,
    SetField,
    UnsetField,
)
from mongo_tracker.render import render_document, render_filter, render_update
from tests.support.entities import Book, Chapter, Genre

pytestmark = pytest.mark.unit


def test_render_update_groups_primitives_by_operator():
    patch = Combine(
        (
            SetField("name", "Dune"),
            UnsetField("etag"),
            AppendEach("tags", ("a", "b")),
            RemoveAll("labels", ("x",)),
            ReplaceField("reading_order", ("1", "2")),
            SetCurrentTimestamp("updated_at"),
        )
    )

    assert render_update(patch) == {
        "$set": {"name": "Dune", "reading_order": ["1", "2"]},
        "$unset": {"etag": ""},
        "$push": {"tags": {"$each": ["a", "b"]}},
        "$pullAll": {"labels": ["x"]},
        "$currentDate": {"updated_at": {"$type": "date"}},
    }


def test_render_update_serializes_values_with_layout(book_model):
    patch = AppendEach("chapters", (Chapter(title="One", pages=10),))

    assert render_update(patch, book_model) == {
        "$push": {"chapters": {"$each": [{"title": "One", "pages": 10}]}}
    }


def test_render_update_of_empty_patch_is_empty():
    assert render_update(Combine()) == {}


def test_render_filter_truncates_datetimes():
    stamp = datetime(2026, 1, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
    filter = Filter.by_identifier("_id", "b1").and_eq("updated_at", stamp).and_eq("etag", "e1")

    assert render_filter(filter) == {
        "_id": "b1",
        "updated_at": datetime(2026, 1, 1, 12, 0, 0, 123000, tzinfo=timezone.utc),
        "etag": "e1",
    }


def test_render_document_uses_element_names_and_skips_ignored(book_model):
    book = Book(id="b1", title="Dune", genre=Genre.HISTORY, cached_summary="skip me")

    document = render_document(book, book_model)

    assert document["_id"] == "b1"
    assert document["name"] == "Dune"
    assert document["genre"] == "history"
    assert "cached_summary" not in document
    assert "title" not in document


def test_render_document_rejects_non_documents():
    with pytest.raises(TypeError):
        render_document("not a document")

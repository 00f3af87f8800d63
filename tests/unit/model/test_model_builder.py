from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

import pytest

from mongo_tracker.kernel.errors import ConfigurationError
from mongo_tracker.model import ModelBuilder, PropertyKind
from tests.support.entities import Book, ChildNode, build_book_model


@dataclass
class Invoice:
    number: str
    total: int = 0
    lines: list[str] = field(default_factory=list)
    issued_at: datetime | None = None
    label: str | None = None


pytestmark = pytest.mark.unit


def test_unconfigured_properties_default_to_scalar():
    builder = ModelBuilder()
    builder.entity(Invoice).property("number").is_identifier()

    entity = builder.build().entity(Invoice)

    assert [p.name for p in entity.properties] == ["number", "total", "lines", "issued_at", "label"]
    assert entity.by_name["total"].kind is PropertyKind.SCALAR
    assert entity.by_name["lines"].kind is PropertyKind.SCALAR


def test_identifier_defaults_to_document_key_element_name():
    entity = build_book_model().entity(Book)

    assert entity.identifier is not None
    assert entity.identifier.name == "id"
    assert entity.identifier.element_name == "_id"


def test_has_element_name_overrides_field_name():
    entity = build_book_model().entity(Book)
    assert entity.by_name["title"].element_name == "name"


def test_has_element_name_rejects_paths_and_operators():
    builder = ModelBuilder()
    with pytest.raises(ConfigurationError):
        builder.entity(Invoice).property("label").has_element_name("a.b")
    with pytest.raises(ConfigurationError):
        builder.entity(Invoice).property("label").has_element_name("$set")


def test_unknown_property_is_rejected():
    builder = ModelBuilder()
    with pytest.raises(ConfigurationError) as exc:
        builder.entity(Invoice).property("missing")
    assert exc.value.meta == {"entity": "Invoice", "property": "missing"}


def test_collection_kinds_require_collection_types():
    builder = ModelBuilder()
    invoice = builder.entity(Invoice)

    with pytest.raises(ConfigurationError):
        invoice.property("label").is_collection()
    with pytest.raises(ConfigurationError):
        invoice.property("total").is_tracked_object_collection()
    with pytest.raises(ConfigurationError):
        invoice.property("number").is_ordered_collection()

    invoice.property("lines").is_collection()
    assert builder.build().entity(Invoice).by_name["lines"].kind is PropertyKind.COLLECTION


def test_version_requires_datetime():
    builder = ModelBuilder()
    invoice = builder.entity(Invoice)

    with pytest.raises(ConfigurationError):
        invoice.property("label").is_version()

    invoice.property("issued_at").is_version()
    entity = builder.build().entity(Invoice)
    assert entity.version is not None
    assert entity.version.name == "issued_at"


def test_build_rejects_two_identifiers():
    builder = ModelBuilder()
    invoice = builder.entity(Invoice)
    invoice.property("number").is_identifier()
    invoice.property("label").is_identifier()

    with pytest.raises(ConfigurationError):
        builder.build()


def test_entity_reuses_builder_and_runs_configure_callback():
    builder = ModelBuilder()
    first = builder.entity(Invoice)
    second = builder.entity(Invoice, lambda b: b.property("number").is_identifier())

    assert first is second
    assert first.property("number").kind is PropertyKind.IDENTIFIER


def test_property_returns_same_builder_for_same_name():
    invoice = ModelBuilder().entity(Invoice)
    assert invoice.property("label") is invoice.property("label")


def test_root_requires_identifier():
    model = build_book_model()
    model.root(Book)

    with pytest.raises(ConfigurationError):
        model.root(ChildNode)


def test_identifier_lookup_fails_on_models_without_one():
    model = build_book_model()

    assert model.root(Book).require_identifier().element_name == "_id"
    with pytest.raises(ConfigurationError):
        model.entity(ChildNode).require_identifier()
    with pytest.raises(ConfigurationError):
        model.entity(ChildNode).identifier_of(ChildNode(name="x"))


def test_collection_kinds():
    collections = {kind for kind in PropertyKind if kind.is_collection}

    assert collections == {
        PropertyKind.COLLECTION,
        PropertyKind.ORDERED_COLLECTION,
        PropertyKind.TRACKED_OBJECT_COLLECTION,
    }


def test_concurrency_tokens_and_tracked_properties():
    entity = build_book_model().entity(Book)

    assert [p.name for p in entity.concurrency_tokens] == ["etag", "revision"]
    tracked = [p.name for p in entity.tracked_properties]
    assert "id" not in tracked
    assert "cached_summary" not in tracked
    assert "updated_at" in tracked


def test_implicit_models_are_cached_per_model():
    model = build_book_model()
    first = model.entity(ChildNode)
    assert model.entity(ChildNode) is first
    assert ChildNode not in model

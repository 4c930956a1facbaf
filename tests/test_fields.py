"""
tests.test_fields

Field-name casing helpers and logical <-> physical translation.
"""

from __future__ import annotations

import pytest

from repobridge.fields import FieldMapping, camel_to_snake, reference_column, snake_to_camel


@pytest.mark.parametrize(
    ("camel", "snake"),
    [
        ("createdAt", "created_at"),
        ("ownerId", "owner_id"),
        ("name", "name"),
        ("HTTPStatus", "http_status"),
        ("version2Name", "version2_name"),
    ],
)
def test_camel_to_snake(camel: str, snake: str) -> None:
    assert camel_to_snake(camel) == snake


@pytest.mark.parametrize(
    ("snake", "camel"),
    [
        ("created_at", "createdAt"),
        ("deleted_at", "deletedAt"),
        ("name", "name"),
        ("_id", "_id"),
        ("owner_user_id", "ownerUserId"),
    ],
)
def test_snake_to_camel(snake: str, camel: str) -> None:
    assert snake_to_camel(snake) == camel


def test_reference_column() -> None:
    assert reference_column("owner", "snake") == "owner_id"
    assert reference_column("billingAccount", "snake") == "billing_account_id"
    assert reference_column("owner", "camel") == "ownerId"
    assert reference_column("billing_account", "camel") == "billingAccountId"


def test_mapping_is_ordered_and_passes_unknown_names_through() -> None:
    mapping = FieldMapping([("id", "_id"), ("created_at", "createdAt")])
    assert list(mapping) == [("id", "_id"), ("created_at", "createdAt")]
    assert mapping.physical("id") == "_id"
    assert mapping.logical("createdAt") == "created_at"
    assert mapping.physical("name") == "name"
    assert mapping.logical("name") == "name"


def test_mapping_rejects_duplicates() -> None:
    with pytest.raises(ValueError):
        FieldMapping([("id", "_id"), ("id", "uuid")])
    with pytest.raises(ValueError):
        FieldMapping([("id", "_id"), ("key", "_id")])


def test_for_fields_builds_pairs() -> None:
    mapping = FieldMapping.for_fields(["createdAt", "name"], references=["owner"])
    assert mapping.pairs == (("createdAt", "created_at"), ("owner", "owner_id"))

    camel = FieldMapping.for_fields(["updated_at"], casing="camel", references=["owner"])
    assert camel.pairs == (("updated_at", "updatedAt"), ("owner", "ownerId"))


def test_document_and_filter_translation() -> None:
    mapping = FieldMapping.mongo_defaults()
    assert mapping.to_physical({"id": "x", "deleted_at": None, "name": "n"}) == {
        "_id": "x",
        "deletedAt": None,
        "name": "n",
    }
    assert mapping.to_logical({"_id": "x", "updatedAt": 1}) == {"id": "x", "updated_at": 1}

    query = {
        "id": {"$in": ["a", "b"]},
        "$or": [{"deleted_at": None}, {"created_at": {"$gt": 1}}],
    }
    assert mapping.translate_filter(query) == {
        "_id": {"$in": ["a", "b"]},
        "$or": [{"deletedAt": None}, {"createdAt": {"$gt": 1}}],
    }
    assert mapping.translate_sort({"created_at": -1, "id": -1}) == {"createdAt": -1, "_id": -1}
    assert mapping.translate_fields(["id", "name"]) == ["_id", "name"]
    assert mapping.translate_fields(None) is None


def test_identity_mapping() -> None:
    mapping = FieldMapping.identity()
    assert len(mapping) == 0
    assert mapping.translate_filter({"deleted_at": None}) == {"deleted_at": None}


def test_extend_appends_pairs() -> None:
    mapping = FieldMapping.mongo_defaults().extend([("owner", "ownerId")])
    assert mapping.physical("owner") == "ownerId"
    assert mapping.physical("id") == "_id"

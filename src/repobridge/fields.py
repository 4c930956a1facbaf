"""
repobridge.fields

Logical <-> physical field-name mapping.

Responsibilities:
- Convert between camelCase and snake_case names.
- Hold an ordered list of (logical, physical) pairs for one backend schema.
- Translate records, filters, sorts and projections across that boundary.

Callers and the repository speak logical names (`id`, `created_at`, ...). A
backend's mapping says how those are spelled in storage (`_id`, `createdAt`, ...).
Names without a pair pass through unchanged.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Literal

Casing = Literal["snake", "camel"]

LIFECYCLE_FIELDS = ("id", "created_at", "updated_at", "deleted_at")
LOGICAL_OPERATORS = ("$and", "$or", "$nor")

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


def camel_to_snake(name: str) -> str:
    name = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    return _WORD_BOUNDARY.sub(r"\1_\2", name).lower()


def snake_to_camel(name: str) -> str:
    # Leading underscores are significant (`_id`), so only inner separators are folded.
    stripped = name.lstrip("_")
    prefix = name[: len(name) - len(stripped)]
    head, *rest = stripped.split("_")
    return prefix + head + "".join(part[:1].upper() + part[1:] for part in rest)


def reference_column(name: str, casing: Casing) -> str:
    # An embedded/related object `owner` is stored as its key: `owner_id` / `ownerId`.
    if casing == "snake":
        return f"{camel_to_snake(name)}_id"
    return f"{snake_to_camel(name)}Id"


class FieldMapping:
    def __init__(self, pairs: Iterable[tuple[str, str]] = ()) -> None:
        self._pairs: tuple[tuple[str, str], ...] = tuple(pairs)
        self._physical: dict[str, str] = {}
        self._logical: dict[str, str] = {}
        for logical, physical in self._pairs:
            if logical in self._physical:
                raise ValueError(f"duplicate logical field {logical!r}")
            if physical in self._logical:
                raise ValueError(f"duplicate physical field {physical!r}")
            self._physical[logical] = physical
            self._logical[physical] = logical

    @classmethod
    def identity(cls) -> FieldMapping:
        return cls()

    @classmethod
    def mongo_defaults(cls) -> FieldMapping:
        return cls(
            [
                ("id", "_id"),
                ("created_at", "createdAt"),
                ("updated_at", "updatedAt"),
                ("deleted_at", "deletedAt"),
            ]
        )

    @classmethod
    def for_fields(
        cls,
        fields: Iterable[str],
        *,
        casing: Casing = "snake",
        references: Iterable[str] = (),
    ) -> FieldMapping:
        convert = camel_to_snake if casing == "snake" else snake_to_camel
        pairs = [(name, convert(name)) for name in fields]
        pairs.extend((name, reference_column(name, casing)) for name in references)
        return cls((logical, physical) for logical, physical in pairs if logical != physical)

    def extend(self, other: FieldMapping | Iterable[tuple[str, str]]) -> FieldMapping:
        extra = other.pairs if isinstance(other, FieldMapping) else tuple(other)
        return FieldMapping(self._pairs + extra)

    @property
    def pairs(self) -> tuple[tuple[str, str], ...]:
        return self._pairs

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __repr__(self) -> str:
        return f"FieldMapping({list(self._pairs)!r})"

    def physical(self, name: str) -> str:
        return self._physical.get(name, name)

    def logical(self, name: str) -> str:
        return self._logical.get(name, name)

    def to_physical(self, doc: Mapping[str, Any]) -> dict[str, Any]:
        return {self.physical(key): value for key, value in doc.items()}

    def to_logical(self, doc: Mapping[str, Any]) -> dict[str, Any]:
        return {self.logical(key): value for key, value in doc.items()}

    def translate_filter(self, query: Mapping[str, Any] | None) -> dict[str, Any]:
        translated: dict[str, Any] = {}
        for key, value in (query or {}).items():
            if key in LOGICAL_OPERATORS:
                translated[key] = [self.translate_filter(clause) for clause in value]
            elif key.startswith("$"):
                translated[key] = value
            else:
                translated[self.physical(key)] = value
        return translated

    def translate_sort(self, sort: Mapping[str, int]) -> dict[str, int]:
        return {self.physical(key): order for key, order in sort.items()}

    def translate_fields(self, names: Iterable[str] | None) -> list[str] | None:
        if names is None:
            return None
        return [self.physical(name) for name in names]


# --- Module Notes -----------------------------------------------------------
# Only top-level keys (and keys inside $and/$or/$nor clauses) are renamed; operator
# documents such as {"$in": [...]} are values and are left as-is.

"""Typed extraction of semi-structured `company_raw` columns.

The provider stores nested data (arrays of strings, arrays of objects, the
company size pair) as JSON text inside single wide-table columns. Each column
is described by a `ShapeDescriptor`; `extract()` turns the raw text into a
lazy sequence of flat named tuples, one per element, with one tuple field per
declared path.

Recovery rules (nothing here raises for bad data):

- NULL / blank column -> no tuples
- text that is not valid JSON, or JSON of the wrong top-level type -> no tuples
  (logged as a warning)
- an element of the wrong type (e.g. a string inside an array of objects) is
  skipped; the rest of the array is still extracted
- a sub-field of the wrong type (e.g. an object where text is expected, or
  "abc" for an int) becomes None; the element is kept

The module has no database dependency so it can be tested on plain strings.
"""

from __future__ import annotations

import json
from collections import Counter, namedtuple
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Any

from logging_utils import get_logger
from utils.value_parsing import clean_text, parse_int

logger = get_logger(__name__)


class Shape(str, Enum):
    SCALAR = "scalar"  # plain text column, not JSON
    ARRAY_OF_SCALAR = "array_of_scalar"  # ["Cloud", "AI"]
    ARRAY_OF_OBJECT = "array_of_object"  # [{"city": ...}, ...]
    SCALAR_PAIR = "scalar_pair"  # [51, 200]


TEXT = "text"
INT = "int"


@dataclass(frozen=True)
class FieldPath:
    """One output field: its name, where it lives in an element, and its kind.

    `path` is a sequence of object keys / array indexes relative to the
    element. An empty path means the element itself.
    """

    name: str
    path: tuple[str | int, ...] = ()
    kind: str = TEXT


@dataclass(frozen=True)
class ShapeDescriptor:
    name: str
    shape: Shape
    fields: tuple[FieldPath, ...]

    def __post_init__(self) -> None:
        if not self.fields:
            raise ValueError(f"descriptor {self.name!r} declares no fields")
        for f in self.fields:
            if f.kind not in (TEXT, INT):
                raise ValueError(f"unknown field kind {f.kind!r} in {self.name!r}")
        if self.shape in (Shape.SCALAR, Shape.ARRAY_OF_SCALAR) and len(self.fields) != 1:
            raise ValueError(f"{self.shape.value} descriptor {self.name!r} needs exactly one field")
        if self.shape is Shape.SCALAR_PAIR and len(self.fields) != 2:
            raise ValueError(f"scalar_pair descriptor {self.name!r} needs exactly two fields")

    @cached_property
    def row_type(self):
        """Named tuple type for this descriptor's output rows."""
        return namedtuple(
            f"{self.name.title().replace('_', '')}Row", self.field_names
        )

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)


def _resolve_path(element: Any, path: tuple[str | int, ...]) -> Any:
    """Walk `path` into `element`; any mismatch yields None."""
    current = element
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return None
            current = current[step]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


def _coerce(kind: str, value: Any) -> Any:
    if kind == INT:
        return parse_int(value)
    return clean_text(value)


def _load_json(raw_value: Any, descriptor: ShapeDescriptor, stats: Counter | None) -> Any:
    """Decode the column text; already-decoded lists/dicts pass through."""
    if isinstance(raw_value, (list, dict)):
        return raw_value
    if isinstance(raw_value, bytes):
        raw_value = raw_value.decode("utf-8", errors="replace")
    if not isinstance(raw_value, str):
        logger.warning(
            "Unexpected %s value for %s; ignoring",
            type(raw_value).__name__,
            descriptor.name,
        )
        if stats is not None:
            stats["invalid_json"] += 1
        return None
    text = raw_value.strip()
    if not text:
        return None
    try:
        return json.loads(text)
    except (ValueError, RecursionError) as e:
        logger.warning("Invalid JSON in %s: %s | %.80r", descriptor.name, e, text)
        if stats is not None:
            stats["invalid_json"] += 1
        return None


def _skip(descriptor: ShapeDescriptor, index: int, element: Any, stats: Counter | None) -> None:
    logger.debug(
        "Skipping %s element %s: unexpected %s",
        descriptor.name,
        index,
        type(element).__name__,
    )
    if stats is not None:
        stats["skipped_elements"] += 1


def extract(
    raw_value: Any,
    descriptor: ShapeDescriptor,
    *,
    stats: Counter | None = None,
) -> Iterator[tuple]:
    """Yield one flat named tuple per element of `raw_value`.

    `stats`, when given, counts `invalid_json`, `wrong_top_level` and
    `skipped_elements` so callers can report recoveries.
    """

    if raw_value is None:
        return

    row_type = descriptor.row_type

    if descriptor.shape is Shape.SCALAR:
        (field,) = descriptor.fields
        value = _coerce(field.kind, raw_value)
        if value is not None:
            yield row_type(value)
        return

    data = _load_json(raw_value, descriptor, stats)
    if data is None:
        return

    if not isinstance(data, list):
        logger.warning(
            "Expected a JSON array for %s, got %s; ignoring",
            descriptor.name,
            type(data).__name__,
        )
        if stats is not None:
            stats["wrong_top_level"] += 1
        return

    if descriptor.shape is Shape.SCALAR_PAIR:
        values = [_coerce(f.kind, _resolve_path(data, f.path)) for f in descriptor.fields]
        if any(v is not None for v in values):
            yield row_type(*values)
        return

    if descriptor.shape is Shape.ARRAY_OF_SCALAR:
        (field,) = descriptor.fields
        for i, element in enumerate(data):
            if isinstance(element, (list, dict)):
                _skip(descriptor, i, element, stats)
                continue
            value = _coerce(field.kind, _resolve_path(element, field.path))
            if value is None:
                continue
            yield row_type(value)
        return

    for i, element in enumerate(data):
        if not isinstance(element, dict):
            _skip(descriptor, i, element, stats)
            continue
        yield row_type(
            *(_coerce(f.kind, _resolve_path(element, f.path)) for f in descriptor.fields)
        )


def extract_all(raw_value: Any, descriptor: ShapeDescriptor, **kwargs) -> list[tuple]:
    """Eager variant of `extract`, mostly for tests and diagnostics."""
    return list(extract(raw_value, descriptor, **kwargs))


# --- Shape descriptors for the provider's company profile columns ---

SPECIALITIES = ShapeDescriptor(
    name="specialities",
    shape=Shape.ARRAY_OF_SCALAR,
    fields=(FieldPath("specialty"),),
)

COMPANY_TYPE = ShapeDescriptor(
    name="company_type",
    shape=Shape.SCALAR,
    fields=(FieldPath("company_type"),),
)

INDUSTRY = ShapeDescriptor(
    name="industry",
    shape=Shape.SCALAR,
    fields=(FieldPath("industry"),),
)

COMPANY_SIZE = ShapeDescriptor(
    name="company_size",
    shape=Shape.SCALAR_PAIR,
    fields=(FieldPath("min", (0,), INT), FieldPath("max", (1,), INT)),
)

LOCATIONS = ShapeDescriptor(
    name="locations",
    shape=Shape.ARRAY_OF_OBJECT,
    fields=(
        FieldPath("country", ("country",)),
        FieldPath("city", ("city",)),
        FieldPath("postal_code", ("postal_code",)),
        FieldPath("line_1", ("line_1",)),
        FieldPath("is_hq", ("is_hq",)),
        FieldPath("state", ("state",)),
    ),
)

UPDATES = ShapeDescriptor(
    name="updates",
    shape=Shape.ARRAY_OF_OBJECT,
    fields=(
        FieldPath("article_link", ("article_link",)),
        FieldPath("image", ("image",)),
        FieldPath("day", ("posted_on", "day"), INT),
        FieldPath("month", ("posted_on", "month"), INT),
        FieldPath("year", ("posted_on", "year"), INT),
        FieldPath("text", ("text",)),
        FieldPath("total_likes", ("total_likes",), INT),
    ),
)

_RELATED_COMPANY_FIELDS = (
    FieldPath("name", ("name",)),
    FieldPath("link", ("link",)),
    FieldPath("industry", ("industry",)),
    FieldPath("location", ("location",)),
)

AFFILIATED_COMPANIES = ShapeDescriptor(
    name="affiliated_companies",
    shape=Shape.ARRAY_OF_OBJECT,
    fields=_RELATED_COMPANY_FIELDS,
)

SIMILAR_COMPANIES = ShapeDescriptor(
    name="similar_companies",
    shape=Shape.ARRAY_OF_OBJECT,
    fields=_RELATED_COMPANY_FIELDS,
)

# Keyed by `company_raw` column name.
DESCRIPTORS: dict[str, ShapeDescriptor] = {
    d.name: d
    for d in (
        SPECIALITIES,
        COMPANY_TYPE,
        INDUSTRY,
        COMPANY_SIZE,
        LOCATIONS,
        UPDATES,
        AFFILIATED_COMPANIES,
        SIMILAR_COMPANIES,
    )
}

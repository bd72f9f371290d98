"""Dimension resolution: distinct values -> stable identifiers.

`DimensionResolver.resolve()` takes every value seen for one dimension in a
batch, normalizes and deduplicates them, inserts the ones that are new with
`INSERT OR IGNORE` against the dimension's UNIQUE key, and reads back the
identifier of every requested value. A value that already exists (from an
earlier batch, an earlier run, or a concurrent writer) resolves to the existing
row; a second row is never created.

Matching is case-sensitive after trimming: "AI" and "ai" are two values.

The same algorithm serves composite keys (e.g. similar companies keyed on
name/link/industry/location); pass several `key_columns` and tuples as values.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import event, select, tuple_
from sqlalchemy.orm import Session as SASession

from logging_utils import get_logger
from utils.bulk_insert import chunked, insert_ignore_bulk, rows_per_chunk
from utils.value_parsing import clean_text

logger = get_logger(__name__)


class DimensionResolver:
    """Get-or-create identifiers for one dimension table.

    Resolved keys are cached per instance; the orchestrator keeps one resolver
    per dimension for a whole run so repeated values cost no queries. The cache
    only holds ids that are valid in the writing session: any rollback of a
    session the resolver has written through clears it.
    """

    def __init__(self, model, *, key_columns: tuple[str, ...] | str, id_column: str):
        if isinstance(key_columns, str):
            key_columns = (key_columns,)
        if not key_columns:
            raise ValueError("key_columns is required")
        self.model = model
        self.key_columns = tuple(key_columns)
        self.id_column = id_column
        self._cache: dict[Any, int] = {}
        self._rollback_listener = self._on_rollback

    @property
    def composite(self) -> bool:
        return len(self.key_columns) > 1

    def normalize(self, value) -> Any:
        """Return the normalized key for `value`, or None to skip it."""
        if not self.composite:
            return clean_text(value)
        if not isinstance(value, (tuple, list)) or len(value) != len(self.key_columns):
            return None
        parts = tuple(clean_text(v) for v in value)
        if any(p is None for p in parts):
            return None
        return parts

    def distinct_keys(self, values: Iterable) -> list:
        """Normalized, deduplicated keys in first-seen order."""
        seen: dict[Any, None] = {}
        for v in values:
            key = self.normalize(v)
            if key is not None:
                seen.setdefault(key, None)
        return list(seen)

    def resolve(self, session: SASession, values: Iterable) -> dict[Any, int]:
        """Map every normalized value in `values` to its dimension identifier."""

        keys = self.distinct_keys(values)
        if not keys:
            return {}

        missing = [k for k in keys if k not in self._cache]
        if missing:
            self._watch(session)
            inserted = insert_ignore_bulk(
                session, self.model, [self._row_for(k) for k in missing]
            )
            found = self._lookup(session, missing)
            unresolved = [k for k in missing if k not in found]
            if unresolved:
                # Only possible if the unique key and the lookup disagree
                # (e.g. a collation on the column); surface it.
                raise LookupError(
                    f"{self.model.__tablename__}: could not resolve {len(unresolved)} "
                    f"value(s), e.g. {unresolved[0]!r}"
                )
            self._cache.update(found)
            logger.debug(
                "Resolved %s %s value(s): %s new, %s existing",
                len(missing),
                self.model.__tablename__,
                inserted,
                len(missing) - inserted,
            )

        return {k: self._cache[k] for k in keys}

    def _row_for(self, key) -> dict:
        if not self.composite:
            return {self.key_columns[0]: key}
        return dict(zip(self.key_columns, key))

    def _lookup(self, session: SASession, keys: list) -> dict[Any, int]:
        id_col = getattr(self.model, self.id_column)
        cols = [getattr(self.model, c) for c in self.key_columns]
        found: dict[Any, int] = {}
        size = rows_per_chunk(len(cols))
        for chunk in chunked(keys, size):
            if self.composite:
                stmt = select(id_col, *cols).where(tuple_(*cols).in_(list(chunk)))
                for row in session.execute(stmt):
                    found[tuple(row[1:])] = row[0]
            else:
                stmt = select(id_col, cols[0]).where(cols[0].in_(list(chunk)))
                for row in session.execute(stmt):
                    found[row[1]] = row[0]
        return found

    def clear_cache(self) -> None:
        self._cache.clear()

    def _watch(self, session: SASession) -> None:
        if not event.contains(session, "after_soft_rollback", self._rollback_listener):
            event.listen(session, "after_soft_rollback", self._rollback_listener)

    def _on_rollback(self, _session, _previous_transaction) -> None:
        if self._cache:
            logger.debug("Rollback: dropping %s cached %s id(s)", len(self._cache), self.model.__tablename__)
        self._cache.clear()

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.orm import Session as SASession

from utils.bulk_insert import insert_ignore_bulk


class RelationshipLinker:
    """Write (company, target) junction rows exactly once.

    Junction tables carry UNIQUE(company_id, <target>); rows are inserted
    with INSERT OR IGNORE so linking the same pair twice, in one call or across
    runs, leaves a single row and raises nothing.
    """

    def __init__(self, junction_model, *, target_column: str, record_column: str = "company_id"):
        self.junction_model = junction_model
        self.target_column = target_column
        self.record_column = record_column

    def link(self, session: SASession, record_id: int, target_ids: Iterable[int]) -> int:
        """Link one record to a set of targets. Returns rows actually inserted."""
        return self.link_pairs(session, ((record_id, t) for t in target_ids))

    def link_pairs(self, session: SASession, pairs: Iterable[tuple[int, int]]) -> int:
        """Bulk variant of `link` over (record_id, target_id) pairs."""
        unique_pairs = sorted({(int(r), int(t)) for r, t in pairs})
        rows = [
            {self.record_column: r, self.target_column: t} for r, t in unique_pairs
        ]
        return insert_ignore_bulk(session, self.junction_model, rows)

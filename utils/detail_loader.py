"""Load one-to-many detail rows extracted from `company_raw`.

Defaulting rules applied before insert:

- locations: trimmed text, `is_hq` normalized to a flag ("true"/"1" -> True,
  anything else -> False); a location without a country is dropped.
- company_updates: missing `article_link` -> "No Link Provided"; missing
  `image` / `text` -> ""; missing `total_likes` -> 0; `posted_on` assembled
  from day/month/year with epoch fallbacks (1900-01-01).
- affiliated_companies: missing name/link/industry/location -> the
  "No ... Provided" sentinels.
- similar_companies: same sentinels, entries without a name are dropped, then
  the (name, link, industry, location) tuple is deduplicated across all
  companies and linked through `similar_companies_junction`.

Plain detail tables have no natural key, so `load_batch(..., replace=True)`
deletes the batch companies' existing rows before inserting. Re-running a
stage therefore reproduces the same rows instead of duplicating them.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from sqlalchemy import delete
from sqlalchemy.orm import Session as SASession

import settings
from logging_utils import get_logger
from models.affiliated_companies import AffiliatedCompany
from models.company_updates import CompanyUpdate
from models.locations import Location
from models.similar_companies import SimilarCompany, SimilarCompanyLink
from utils.bulk_insert import chunked, insert_bulk
from utils.dimension_resolver import DimensionResolver
from utils.relationship_linker import RelationshipLinker
from utils.time_utils import assemble_date
from utils.value_parsing import parse_flag

logger = get_logger(__name__)

RowBuilder = Callable[[int, tuple], "dict | None"]


def _or(value, default):
    return default if value is None else value


def location_row(company_id: int, sub) -> dict | None:
    if sub.country is None:
        return None
    return {
        "company_id": company_id,
        "country": sub.country,
        "city": sub.city,
        "postal_code": sub.postal_code,
        "address_line1": sub.line_1,
        "is_hq": parse_flag(sub.is_hq),
        "state": sub.state,
    }


def update_row(company_id: int, sub) -> dict:
    return {
        "company_id": company_id,
        "article_link": _or(sub.article_link, settings.NO_LINK),
        "image": _or(sub.image, settings.NO_IMAGE),
        "posted_on": assemble_date(sub.year, sub.month, sub.day),
        "update_text": _or(sub.text, settings.NO_TEXT),
        "total_likes": _or(sub.total_likes, settings.NO_NUMBER),
    }


def related_company_identity(sub) -> tuple[str, str, str, str]:
    """(name, linkedin_url, industry, location) with sentinel defaults."""
    return (
        _or(sub.name, settings.NO_NAME),
        _or(sub.link, settings.NO_LINK),
        _or(sub.industry, settings.NO_INDUSTRY),
        _or(sub.location, settings.NO_LOCATION),
    )


def affiliated_row(company_id: int, sub) -> dict:
    name, link, industry, location = related_company_identity(sub)
    return {
        "company_id": company_id,
        "name": name,
        "linkedin_url": link,
        "industry": industry,
        "location": location,
    }


class DetailLoader:
    """Insert one row per extracted sub-record, tied to the owning company."""

    def __init__(self, model, row_builder: RowBuilder):
        self.model = model
        self.row_builder = row_builder

    def build_rows(self, record_id: int, sub_records: Iterable[tuple]) -> list[dict]:
        rows = []
        for sub in sub_records:
            row = self.row_builder(record_id, sub)
            if row is None:
                logger.debug(
                    "Dropping %s sub-record for company_id=%s: required field missing",
                    self.model.__tablename__,
                    record_id,
                )
                continue
            rows.append(row)
        return rows

    def load(self, session: SASession, record_id: int, sub_records: Iterable[tuple]) -> int:
        """Insert rows for one company. No dedup; returns rows inserted."""
        return insert_bulk(session, self.model, self.build_rows(record_id, sub_records))

    def delete_for(self, session: SASession, record_ids: Iterable[int]) -> int:
        ids = sorted(set(record_ids))
        deleted = 0
        for chunk in chunked(ids, 500):
            res = session.execute(
                delete(self.model).where(self.model.company_id.in_(list(chunk)))
            )
            deleted += int(getattr(res, "rowcount", 0) or 0)
        return deleted

    def load_batch(
        self,
        session: SASession,
        items: Iterable[tuple[int, Iterable[tuple]]],
        *,
        replace: bool = True,
    ) -> int:
        """Load many companies at once.

        With `replace=True` every company in `items` first loses its existing
        rows in this table, so the batch can be re-run safely.
        """
        items = list(items)
        if replace:
            removed = self.delete_for(session, (rid for rid, _ in items))
            if removed:
                logger.debug(
                    "Replaced %s existing %s row(s)", removed, self.model.__tablename__
                )
        rows: list[dict] = []
        for record_id, sub_records in items:
            rows.extend(self.build_rows(record_id, sub_records))
        return insert_bulk(session, self.model, rows)


def location_loader() -> DetailLoader:
    return DetailLoader(Location, location_row)


def update_loader() -> DetailLoader:
    return DetailLoader(CompanyUpdate, update_row)


def affiliated_loader() -> DetailLoader:
    return DetailLoader(AffiliatedCompany, affiliated_row)


class SimilarCompanyLoader:
    """Shared similar companies: dedup on the identity tuple, then link."""

    def __init__(
        self,
        resolver: DimensionResolver | None = None,
        linker: RelationshipLinker | None = None,
    ):
        self.resolver = resolver or DimensionResolver(
            SimilarCompany,
            key_columns=("name", "linkedin_url", "industry", "location"),
            id_column="similar_companies_id",
        )
        self.linker = linker or RelationshipLinker(
            SimilarCompanyLink, target_column="similar_companies_id"
        )

    @staticmethod
    def identities(sub_records: Iterable[tuple]) -> list[tuple[str, str, str, str]]:
        out = []
        for sub in sub_records:
            if sub.name is None:
                continue
            out.append(related_company_identity(sub))
        return out

    def load(self, session: SASession, record_id: int, sub_records: Iterable[tuple]) -> int:
        return self.load_batch(session, [(record_id, sub_records)])

    def load_batch(
        self, session: SASession, items: Iterable[tuple[int, Iterable[tuple]]]
    ) -> int:
        """Resolve all identities of the batch first, then write junction rows.

        Returns the number of junction rows inserted.
        """
        per_record = [(rid, self.identities(subs)) for rid, subs in items]
        mapping = self.resolver.resolve(
            session, (ident for _, idents in per_record for ident in idents)
        )
        pairs = [
            (rid, mapping[ident]) for rid, idents in per_record for ident in idents
        ]
        return self.linker.link_pairs(session, pairs)

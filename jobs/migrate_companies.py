"""Migrate `company_raw` staging rows into the normalized company schema.

Run once after the loader has filled `company_raw` (see `load_to_db.py`) and
the schema has been created (see `utils/recreate_sqlite_db.py`), and before
`utils/cleanup_staging.py` drops the staging columns.

Stages, in order:

- companies            scalar profile fields + company size min/max
- specialties          specialty dimension + company_specialty
- types                type dimension + company_type
- industries           industry dimension + industry_type
- locations            locations (replaced per company on re-run)
- updates              company_updates (replaced per company on re-run)
- affiliated_companies affiliated_companies (replaced per company on re-run)
- similar_companies    shared similar_companies + similar_companies_junction

Every stage walks `company_raw` in `company_id` order, one batch at a time,
and commits per batch. All stages are safe to re-run.

Usage:
    python jobs/migrate_companies.py                     # all stages, with prompt
    python jobs/migrate_companies.py --yes               # no prompt
    python jobs/migrate_companies.py --stage specialties --stage types
    python jobs/migrate_companies.py --dry-run --verbose # roll back at the end

Exit codes:
    0: Success
    2: Fatal error (schema missing, precondition violated, database error)
    130: Interrupted
"""

from __future__ import annotations

import argparse
import sys
from collections import Counter
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

# Allow running this file directly (e.g. `python jobs/migrate_companies.py`) by
# ensuring the project root is importable.
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from sqlalchemy import func, inspect, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session as SASession
from sqlalchemy.orm import sessionmaker

import logging_utils
from config import Config
from db import make_engine, sqlite_url
from logging_utils import get_logger
from models import Base
from models.companies import Company
from models.company_raw import CompanyRaw
from models.company_types import CompanyTypeLink, CompanyTypeName
from models.industries import CompanyIndustry, Industry
from models.migration_runs import MigrationRun
from models.specialties import CompanySpecialty, Specialty
from utils import field_extractor as fx
from utils.bulk_insert import chunked, rows_per_chunk
from utils.detail_loader import (
    DetailLoader,
    SimilarCompanyLoader,
    affiliated_loader,
    location_loader,
    update_loader,
)
from utils.dimension_resolver import DimensionResolver
from utils.relationship_linker import RelationshipLinker
from utils.time_utils import utcnow
from utils.timing import timed_block
from utils.value_parsing import clean_text, parse_int

logger = get_logger(__name__)

STAGES: tuple[str, ...] = (
    "companies",
    "specialties",
    "types",
    "industries",
    "locations",
    "updates",
    "affiliated_companies",
    "similar_companies",
)

# company_raw column read by each stage (besides company_id).
STAGE_COLUMNS: dict[str, tuple[str, ...]] = {
    "companies": (
        "name",
        "description",
        "website",
        "tagline",
        "linkedin_internal_id",
        "universal_name_id",
        "search_id",
        "profile_pic_url",
        "background_cover_image_url",
        "founded_year",
        "follower_count",
        "company_size",
        "company_size_on_linkedin",
    ),
    "specialties": ("specialities",),
    "types": ("company_type",),
    "industries": ("industry",),
    "locations": ("locations",),
    "updates": ("updates",),
    "affiliated_companies": ("affiliated_companies",),
    "similar_companies": ("similar_companies",),
}

# Text columns copied verbatim (trimmed) from company_raw to companies.
_COMPANY_TEXT_COLUMNS: tuple[str, ...] = (
    "name",
    "description",
    "website",
    "tagline",
    "linkedin_internal_id",
    "universal_name_id",
    "search_id",
    "profile_pic_url",
    "background_cover_image_url",
)


class MigrationPreconditionError(RuntimeError):
    """The migration cannot run: schema missing or components out of order."""


@dataclass
class StageResult:
    stage: str
    records_seen: int = 0
    rows_written: int = 0
    batches: int = 0
    recoveries: Counter = field(default_factory=Counter)


@dataclass(frozen=True)
class DimensionStage:
    column: str
    descriptor: fx.ShapeDescriptor
    resolver: DimensionResolver
    linker: RelationshipLinker


def _dimension_stages() -> dict[str, DimensionStage]:
    return {
        "specialties": DimensionStage(
            column="specialities",
            descriptor=fx.DESCRIPTORS["specialities"],
            resolver=DimensionResolver(
                Specialty, key_columns="specialty_name", id_column="specialty_name_id"
            ),
            linker=RelationshipLinker(
                CompanySpecialty, target_column="specialty_name_id"
            ),
        ),
        "types": DimensionStage(
            column="company_type",
            descriptor=fx.DESCRIPTORS["company_type"],
            resolver=DimensionResolver(
                CompanyTypeName,
                key_columns="company_type_name",
                id_column="company_type_id",
            ),
            linker=RelationshipLinker(CompanyTypeLink, target_column="company_type_id"),
        ),
        "industries": DimensionStage(
            column="industry",
            descriptor=fx.DESCRIPTORS["industry"],
            resolver=DimensionResolver(
                Industry, key_columns="industry_name", id_column="industry_id"
            ),
            linker=RelationshipLinker(CompanyIndustry, target_column="industry_id"),
        ),
    }


def _detail_stages() -> dict[str, tuple[fx.ShapeDescriptor, DetailLoader]]:
    # Detail stages read the company_raw column of the same name.
    loaders = {
        "locations": location_loader(),
        "updates": update_loader(),
        "affiliated_companies": affiliated_loader(),
    }
    return {stage: (fx.DESCRIPTORS[stage], loader) for stage, loader in loaders.items()}


def iter_raw_batches(
    session: SASession, columns: Sequence[str], batch_size: int
) -> Iterator[list]:
    """Yield lists of (company_id, *columns) rows using keyset pagination."""
    cols = [CompanyRaw.company_id] + [getattr(CompanyRaw, c) for c in columns]
    last_id = None
    while True:
        stmt = select(*cols).order_by(CompanyRaw.company_id).limit(batch_size)
        if last_id is not None:
            stmt = stmt.where(CompanyRaw.company_id > last_id)
        batch = session.execute(stmt).all()
        if not batch:
            return
        yield batch
        last_id = batch[-1][0]


def company_row(raw, *, recoveries: Counter | None = None) -> dict:
    """Build a `companies` row from a raw row with the companies-stage columns."""
    row = {"company_id": raw.company_id}
    for col in _COMPANY_TEXT_COLUMNS:
        row[col] = clean_text(getattr(raw, col))
    row["founded_year"] = parse_int(raw.founded_year)
    row["follower_count"] = parse_int(raw.follower_count)
    row["company_size_on_linkedin"] = parse_int(raw.company_size_on_linkedin)

    size = next(
        iter(fx.extract(raw.company_size, fx.DESCRIPTORS["company_size"], stats=recoveries)),
        None,
    )
    row["company_size_min"] = size.min if size else None
    row["company_size_max"] = size.max if size else None
    return row


def upsert_companies(session: SASession, rows: list[dict]) -> int:
    """Insert or refresh `companies` rows keyed by company_id."""
    if not rows:
        return 0
    written = 0
    for chunk in chunked(rows, rows_per_chunk(len(rows[0]))):
        stmt = sqlite_insert(Company).values(list(chunk))
        stmt = stmt.on_conflict_do_update(
            index_elements=[Company.company_id],
            set_={
                c: getattr(stmt.excluded, c) for c in chunk[0] if c != "company_id"
            },
        )
        res = session.execute(stmt)
        written += int(getattr(res, "rowcount", 0) or 0)
    session.flush()
    return written


class CompanyMigration:
    """Run the migration stages over `company_raw`.

    `session_factory` must produce sessions bound to a bootstrapped database.
    With `dry_run=True` all stages share one transaction that is rolled back
    at the end, and nothing is written to the run ledger.
    """

    def __init__(
        self,
        session_factory,
        *,
        batch_size: int | None = None,
        dry_run: bool = False,
    ):
        self.session_factory = session_factory
        self.batch_size = batch_size or Config().BATCH_SIZE
        if self.batch_size <= 0:
            raise ValueError("batch_size must be a positive integer")
        self.dry_run = dry_run
        self._dimensions = _dimension_stages()
        self._details = _detail_stages()
        self._similar = SimilarCompanyLoader()

    def _reset_caches(self) -> None:
        for dim in self._dimensions.values():
            dim.resolver.clear_cache()
        self._similar.resolver.clear_cache()

    # --- preconditions ---

    def check_schema(self, session: SASession) -> None:
        existing = set(inspect(session.get_bind()).get_table_names())
        missing = sorted(set(Base.metadata.tables) - existing)
        if missing:
            raise MigrationPreconditionError(
                f"Schema not bootstrapped; missing tables: {', '.join(missing)}. "
                "Run utils/recreate_sqlite_db.py first."
            )

    def check_companies_loaded(self, session: SASession) -> None:
        orphans = session.execute(
            select(func.count())
            .select_from(CompanyRaw)
            .outerjoin(Company, Company.company_id == CompanyRaw.company_id)
            .where(Company.company_id.is_(None))
        ).scalar_one()
        if orphans:
            raise MigrationPreconditionError(
                f"{orphans} company_raw row(s) have no companies row; "
                "run the 'companies' stage before dimension/detail stages."
            )

    # --- stage bodies (one batch each) ---

    def _companies_batch(self, session, batch, result: StageResult) -> int:
        rows = [company_row(raw, recoveries=result.recoveries) for raw in batch]
        return upsert_companies(session, rows)

    def _dimension_batch(self, session, batch, result: StageResult, stage: DimensionStage) -> int:
        per_record = [
            (
                raw[0],
                [sub[0] for sub in fx.extract(raw[1], stage.descriptor, stats=result.recoveries)],
            )
            for raw in batch
        ]
        # Distinct values of the whole batch are resolved before any linking.
        mapping = stage.resolver.resolve(
            session, (v for _, values in per_record for v in values)
        )
        pairs = []
        for company_id, values in per_record:
            for v in values:
                key = stage.resolver.normalize(v)
                if key is not None:
                    pairs.append((company_id, mapping[key]))
        return stage.linker.link_pairs(session, pairs)

    def _detail_batch(self, session, batch, result: StageResult, loader: DetailLoader, descriptor) -> int:
        items = [
            (raw[0], list(fx.extract(raw[1], descriptor, stats=result.recoveries)))
            for raw in batch
        ]
        return loader.load_batch(session, items, replace=True)

    def _similar_batch(self, session, batch, result: StageResult) -> int:
        items = [
            (raw[0], list(fx.extract(raw[1], fx.DESCRIPTORS["similar_companies"], stats=result.recoveries)))
            for raw in batch
        ]
        return self._similar.load_batch(session, items)

    def _batch_handler(self, stage: str):
        if stage == "companies":
            return self._companies_batch
        if stage in self._dimensions:
            dim = self._dimensions[stage]
            return lambda s, b, r: self._dimension_batch(s, b, r, dim)
        if stage in self._details:
            descriptor, loader = self._details[stage]
            return lambda s, b, r: self._detail_batch(s, b, r, loader, descriptor)
        if stage == "similar_companies":
            return self._similar_batch
        raise ValueError(f"Unknown stage: {stage!r}")

    # --- run ledger ---

    def _ledger_start(self, stage: str) -> int | None:
        if self.dry_run:
            return None
        with self.session_factory() as ledger:
            run = MigrationRun(stage=stage, status="running", started_at=utcnow())
            ledger.add(run)
            ledger.commit()
            return run.id

    def _ledger_finish(self, run_id: int | None, result: StageResult, *, error: str | None = None) -> None:
        if run_id is None:
            return
        with self.session_factory() as ledger:
            run = ledger.get(MigrationRun, run_id)
            run.status = "failed" if error else "ok"
            run.records_seen = result.records_seen
            run.rows_written = result.rows_written
            run.finished_at = utcnow()
            run.error = error
            ledger.commit()

    # --- driver ---

    def run_stage(self, session: SASession, stage: str) -> StageResult:
        if stage not in STAGES:
            raise ValueError(f"Unknown stage: {stage!r}")
        if stage != "companies":
            self.check_companies_loaded(session)

        handler = self._batch_handler(stage)
        result = StageResult(stage=stage)
        run_id = self._ledger_start(stage)

        try:
            with timed_block(f"stage {stage}", logger_obj=logger) as progress:
                for batch in iter_raw_batches(session, STAGE_COLUMNS[stage], self.batch_size):
                    result.rows_written += handler(session, batch, result)
                    result.records_seen += len(batch)
                    progress.advance(len(batch))
                    result.batches += 1
                    if self.dry_run:
                        session.flush()
                    else:
                        session.commit()
        except IntegrityError as e:
            session.rollback()
            self._ledger_finish(run_id, result, error=f"IntegrityError: {e.orig}")
            raise MigrationPreconditionError(
                f"Stage {stage!r} violated referential integrity: {e.orig}"
            ) from e
        except Exception as e:
            session.rollback()
            self._ledger_finish(run_id, result, error=f"{type(e).__name__}: {e}")
            raise

        self._ledger_finish(run_id, result)

        if result.recoveries:
            logger.info("Stage %s recovered from: %s", stage, dict(result.recoveries))
        logger.info(
            "Stage %s complete: records=%s rows_written=%s batches=%s",
            stage,
            result.records_seen,
            result.rows_written,
            result.batches,
        )
        return result

    def run(self, stages: Sequence[str] | None = None) -> dict[str, StageResult]:
        """Run `stages` (default: all) in the fixed stage order."""
        requested = list(stages) if stages else list(STAGES)
        unknown = [s for s in requested if s not in STAGES]
        if unknown:
            raise ValueError(f"Unknown stage(s): {', '.join(unknown)}")
        ordered = [s for s in STAGES if s in requested]
        self._reset_caches()

        results: dict[str, StageResult] = {}
        with self.session_factory() as session:
            try:
                self.check_schema(session)
            except OperationalError as e:
                raise MigrationPreconditionError(f"Cannot inspect database: {e}") from e

            with timed_block("migrate_companies total", logger_obj=logger) as progress:
                for stage in ordered:
                    results[stage] = self.run_stage(session, stage)
                    progress.advance(results[stage].records_seen)

            if self.dry_run:
                session.rollback()
                logger.info("DRY RUN: rolled back all stages")

        return results


def completed_stages(session: SASession) -> set[str]:
    """Stages with at least one successful (non dry-run) ledger entry."""
    rows = session.execute(
        select(MigrationRun.stage).where(MigrationRun.status == "ok").distinct()
    ).scalars()
    return set(rows)


def _summarize_run_setup(session: SASession) -> dict:
    raw_count = session.execute(select(func.count()).select_from(CompanyRaw)).scalar_one()
    company_count = session.execute(select(func.count()).select_from(Company)).scalar_one()
    return {
        "raw_companies": raw_count,
        "companies": company_count,
        "completed_stages": sorted(completed_stages(session)),
    }


def _prompt_yes_no(prompt: str, *, default_no: bool = True) -> bool:
    suffix = " [y/N]: " if default_no else " [Y/n]: "
    try:
        resp = input(prompt + suffix).strip().lower()
    except EOFError:
        return not default_no
    if not resp:
        return not default_no
    return resp in {"y", "yes"}


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    cfg = Config()
    p = argparse.ArgumentParser(
        description="Normalize company_raw into the relational company schema",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument(
        "--db",
        default=None,
        help="Path to SQLite DB (default: DATABASE_URL or data/company.db)",
    )
    p.add_argument(
        "--stage",
        action="append",
        choices=STAGES,
        dest="stages",
        help="Run only this stage (repeatable). Default: all stages.",
    )
    p.add_argument(
        "--batch-size",
        type=int,
        default=cfg.BATCH_SIZE,
        dest="batch_size",
        help=f"Raw rows per batch (default: {cfg.BATCH_SIZE})",
    )
    p.add_argument(
        "--dry-run",
        action="store_true",
        dest="dry_run",
        help="Run every stage, then roll back instead of committing",
    )
    p.add_argument(
        "--yes",
        "-y",
        action="store_true",
        default=cfg.ASSUME_YES,
        help="Do not prompt for confirmation",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    if args.verbose:
        logging_utils.set_level("DEBUG")
        logger.debug("Debug logging enabled")

    if args.batch_size <= 0:
        logger.error("--batch-size must be a positive integer")
        return 2

    url = sqlite_url(args.db) if args.db else Config().DATABASE_URL
    engine = make_engine(url)
    SessionLocal = sessionmaker(bind=engine, future=True)

    try:
        if not args.yes:
            with SessionLocal() as session:
                try:
                    summary = _summarize_run_setup(session)
                except OperationalError as e:
                    logger.error("Database not ready: %s", e)
                    return 2
            print("\nmigrate_companies.py planned run")
            print(f"- database: {url}")
            print(f"- stages: {', '.join(args.stages or STAGES)}")
            print(f"- raw companies: {summary['raw_companies']}")
            print(f"- companies already migrated: {summary['companies']}")
            print(f"- previously completed stages: {', '.join(summary['completed_stages']) or '(none)'}")
            print(f"- dry run: {args.dry_run}")
            if not _prompt_yes_no("Proceed?", default_no=True):
                print("Aborted.")
                return 0

        migration = CompanyMigration(
            SessionLocal, batch_size=args.batch_size, dry_run=args.dry_run
        )
        results = migration.run(args.stages)

        for stage, res in results.items():
            logger.info(
                "%s: records=%s rows_written=%s recoveries=%s",
                stage,
                res.records_seen,
                res.rows_written,
                dict(res.recoveries) or "-",
            )
        return 0

    except MigrationPreconditionError as e:
        logger.error("Migration aborted: %s", e)
        return 2

    except SQLAlchemyError as e:
        logger.error("Database error: %s", e, exc_info=True)
        return 2

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130

    finally:
        engine.dispose()


if __name__ == "__main__":
    raise SystemExit(main())

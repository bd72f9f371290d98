from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from jobs import migrate_companies as mc
from models.affiliated_companies import AffiliatedCompany
from models.companies import Company
from models.company_types import CompanyTypeLink, CompanyTypeName
from models.company_updates import CompanyUpdate
from models.industries import CompanyIndustry, Industry
from models.locations import Location
from models.migration_runs import MigrationRun
from models.similar_companies import SimilarCompany, SimilarCompanyLink
from models.specialties import CompanySpecialty, Specialty
from pytests.common import (
    add_raw_companies,
    count_rows,
    create_empty_sqlite_db,
    make_sqlite_engine,
)

ALL_TABLES = (
    Company,
    Specialty,
    CompanySpecialty,
    CompanyTypeName,
    CompanyTypeLink,
    Industry,
    CompanyIndustry,
    Location,
    CompanyUpdate,
    AffiliatedCompany,
    SimilarCompany,
    SimilarCompanyLink,
)


def _snapshot(session) -> dict[str, int]:
    return {m.__tablename__: count_rows(session, m) for m in ALL_TABLES}


def _specialties_of(session, company_id) -> list[str]:
    return sorted(
        session.execute(
            select(Specialty.specialty_name)
            .join(CompanySpecialty, CompanySpecialty.specialty_name_id == Specialty.specialty_name_id)
            .where(CompanySpecialty.company_id == company_id)
        ).scalars()
    )


def test_specialties_end_to_end(tmp_db_session, session_factory):
    session, _engine = tmp_db_session
    (cid,) = add_raw_companies(session, [{"name": "Acme", "specialities": '["AI", "  ai  ", "Cloud"]'}])

    mc.CompanyMigration(session_factory).run()

    assert sorted(session.execute(select(Specialty.specialty_name)).scalars()) == ["AI", "Cloud", "ai"]
    assert _specialties_of(session, cid) == ["AI", "Cloud", "ai"]


def test_full_profile(tmp_db_session, session_factory, sample_profile):
    session, _engine = tmp_db_session
    (cid,) = add_raw_companies(session, [sample_profile])

    results = mc.CompanyMigration(session_factory).run()

    assert list(results) == list(mc.STAGES)
    company = session.get(Company, cid)
    assert company.name == "Acme Cloud"
    assert company.founded_year == 2009
    assert company.follower_count == 12345
    assert (company.company_size_min, company.company_size_max) == (51, 200)
    assert company.company_size_on_linkedin == 180

    assert _specialties_of(session, cid) == ["Cloud Computing", "SaaS"]
    assert session.execute(select(CompanyTypeName.company_type_name)).scalar_one() == "Privately Held"
    assert count_rows(session, CompanyTypeLink) == 1
    assert session.execute(select(Industry.industry_name)).scalar_one() == "Software Development"
    assert count_rows(session, CompanyIndustry) == 1

    assert count_rows(session, Location) == 2
    hq = session.execute(select(Location).where(Location.country == "US")).scalar_one()
    assert hq.is_hq is True and hq.state == "TX"

    updates = session.execute(
        select(CompanyUpdate).order_by(CompanyUpdate.update_id)
    ).scalars().all()
    assert updates[0].posted_on == date(2024, 3, 5)
    assert updates[1].article_link == "No Link Provided"
    assert updates[1].posted_on == date(1900, 1, 1)

    affiliated = sorted(session.execute(select(AffiliatedCompany.name)).scalars())
    assert affiliated == ["Acme Labs", "Acme Ventures"]

    assert session.execute(select(SimilarCompany.name)).scalars().all() == ["Globex"]
    assert count_rows(session, SimilarCompanyLink) == 1


def test_rerun_is_idempotent(tmp_db_session, session_factory, sample_profile):
    session, _engine = tmp_db_session
    add_raw_companies(session, [sample_profile, {"name": "Beta", "specialities": '["SaaS"]'}])

    mc.CompanyMigration(session_factory).run()
    first = _snapshot(session)
    second_results = mc.CompanyMigration(session_factory).run()
    session.expire_all()

    assert _snapshot(session) == first
    assert second_results["specialties"].rows_written == 0
    assert second_results["similar_companies"].rows_written == 0


@pytest.mark.parametrize(
    "profile",
    [
        {"name": "Nulls"},
        {
            "name": "Empties",
            "specialities": "[]",
            "locations": "",
            "updates": "   ",
            "company_size": "[]",
            "company_type": "",
            "industry": "  ",
        },
    ],
)
def test_null_and_empty_columns_write_no_children(tmp_db_session, session_factory, profile):
    session, _engine = tmp_db_session
    (cid,) = add_raw_companies(session, [profile])

    mc.CompanyMigration(session_factory).run()

    snap = _snapshot(session)
    assert snap.pop("companies") == 1
    assert set(snap.values()) == {0}
    company = session.get(Company, cid)
    assert company.company_size_min is None and company.company_size_max is None


def test_malformed_values_do_not_abort_batch(tmp_db_session, session_factory):
    session, _engine = tmp_db_session
    ids = add_raw_companies(
        session,
        [
            {"name": "Broken", "specialities": '["AI", ', "locations": '[1, {"country": "US"}]'},
            {"name": "Fine", "specialities": '["AI"]', "locations": '{"country": "DE"}'},
        ],
    )

    results = mc.CompanyMigration(session_factory).run(["companies", "specialties", "locations"])

    assert _specialties_of(session, ids[0]) == []
    assert _specialties_of(session, ids[1]) == ["AI"]
    assert session.execute(select(Location.country)).scalars().all() == ["US"]
    assert results["specialties"].recoveries["invalid_json"] == 1
    assert results["locations"].recoveries["skipped_elements"] == 1
    assert results["locations"].recoveries["wrong_top_level"] == 1


def test_similar_companies_shared_across_batches(tmp_db_session, session_factory):
    session, _engine = tmp_db_session
    globex = {"name": "Globex", "link": "https://www.linkedin.com/company/globex"}
    add_raw_companies(
        session,
        [
            {"name": "A", "similar_companies": [globex], "specialities": ["Cloud Computing"]},
            {"name": "B", "similar_companies": [dict(globex, name="  Globex ")], "specialities": [" Cloud Computing"]},
            {"name": "C", "similar_companies": [globex], "specialities": ["Cloud Computing "]},
        ],
    )

    mc.CompanyMigration(session_factory, batch_size=1).run()

    assert count_rows(session, SimilarCompany) == 1
    assert count_rows(session, SimilarCompanyLink) == 3
    assert count_rows(session, Specialty) == 1
    assert count_rows(session, CompanySpecialty) == 3
    similar = session.execute(select(SimilarCompany)).scalar_one()
    assert similar.industry == "No Industry Provided"


def test_stage_before_companies_is_refused(tmp_db_session, session_factory):
    session, _engine = tmp_db_session
    add_raw_companies(session, [{"name": "Acme", "specialities": '["AI"]'}])

    with pytest.raises(mc.MigrationPreconditionError):
        mc.CompanyMigration(session_factory).run(["specialties"])

    assert count_rows(session, Specialty) == 0


def test_missing_schema_is_refused(tmp_path):
    engine = make_sqlite_engine(tmp_path / "bare.sqlite")
    try:
        with pytest.raises(mc.MigrationPreconditionError):
            mc.CompanyMigration(sessionmaker(bind=engine)).run()
    finally:
        engine.dispose()


def test_unknown_stage_rejected(session_factory):
    with pytest.raises(ValueError):
        mc.CompanyMigration(session_factory).run(["colors"])
    with pytest.raises(ValueError):
        mc.CompanyMigration(session_factory, batch_size=-1)


def test_dry_run_writes_nothing(tmp_db_session, session_factory, sample_profile):
    session, _engine = tmp_db_session
    add_raw_companies(session, [sample_profile])

    results = mc.CompanyMigration(session_factory, dry_run=True).run()

    assert results["specialties"].rows_written == 2
    assert set(_snapshot(session).values()) == {0}
    assert count_rows(session, MigrationRun) == 0


def test_dry_run_then_real_run(tmp_db_session, session_factory, sample_profile):
    session, _engine = tmp_db_session
    add_raw_companies(session, [sample_profile])

    mc.CompanyMigration(session_factory, dry_run=True).run()
    mc.CompanyMigration(session_factory).run()

    assert count_rows(session, CompanySpecialty) == 2


def test_ledger_records_each_stage(tmp_db_session, session_factory, sample_profile):
    session, _engine = tmp_db_session
    add_raw_companies(session, [sample_profile])

    mc.CompanyMigration(session_factory).run()

    runs = session.execute(select(MigrationRun).order_by(MigrationRun.id)).scalars().all()
    assert [r.stage for r in runs] == list(mc.STAGES)
    assert {r.status for r in runs} == {"ok"}
    assert all(r.records_seen == 1 and r.finished_at is not None for r in runs)
    assert mc.completed_stages(session) == set(mc.STAGES)


def test_failed_stage_is_recorded(tmp_db_session, session_factory, monkeypatch):
    session, _engine = tmp_db_session
    add_raw_companies(session, [{"name": "Acme"}])

    def boom(*_args, **_kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(mc, "upsert_companies", boom)

    with pytest.raises(RuntimeError):
        mc.CompanyMigration(session_factory).run(["companies"])

    run = session.execute(select(MigrationRun)).scalar_one()
    assert run.stage == "companies"
    assert run.status == "failed"
    assert "boom" in run.error
    assert count_rows(session, Company) == 0
    assert mc.completed_stages(session) == set()


def test_main_runs_all_stages(tmp_path, sample_profile):
    db_path = tmp_path / "cli.sqlite"
    session, engine = create_empty_sqlite_db(db_path)
    try:
        add_raw_companies(session, [sample_profile])
        assert mc.main(["--db", str(db_path), "--yes", "--batch-size", "10"]) == 0
        assert count_rows(session, Company) == 1
        assert mc.completed_stages(session) == set(mc.STAGES)
    finally:
        session.close()
        engine.dispose()


def test_main_reports_precondition_errors(tmp_path):
    db_path = tmp_path / "empty.sqlite"
    assert mc.main(["--db", str(db_path), "--yes"]) == 2
    assert mc.main(["--db", str(db_path), "--yes", "--batch-size", "0"]) == 2


def test_out_of_range_numbers_fall_back(tmp_db_session, session_factory):
    session, _engine = tmp_db_session
    bad, good = add_raw_companies(
        session,
        [
            {
                "name": "Odd",
                "founded_year": "\u00b2",
                "follower_count": 10**20,
                "updates": '[{"text": "huge", "total_likes": 1e20}, {"text": "ok", "total_likes": 7}]',
            },
            {"name": "Plain", "founded_year": "2001"},
        ],
    )

    results = mc.CompanyMigration(session_factory).run(["companies", "updates"])

    assert results["companies"].records_seen == 2
    odd = session.get(Company, bad)
    assert odd.founded_year is None
    assert odd.follower_count is None
    assert session.get(Company, good).founded_year == 2001
    likes = dict(session.execute(select(CompanyUpdate.update_text, CompanyUpdate.total_likes)).all())
    assert likes == {"huge": 0, "ok": 7}

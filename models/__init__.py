"""SQLAlchemy models package.

Important: This project uses a single declarative Base defined in `db.py`.
Import `Base` from this package in all model modules.

Example:

    Base.metadata.create_all(...)

This keeps `Base.metadata` consistent across the app.
"""

from db import Base  # re-export a single shared Base

# Import models so they are registered with SQLAlchemy metadata on startup.
# This makes `Base.metadata.create_all()` create all tables for a fresh DB.
from models.company_raw import CompanyRaw  # noqa: F401
from models.companies import Company  # noqa: F401
from models.specialties import CompanySpecialty, Specialty  # noqa: F401
from models.company_types import CompanyTypeLink, CompanyTypeName  # noqa: F401
from models.industries import CompanyIndustry, Industry  # noqa: F401
from models.locations import Location  # noqa: F401
from models.company_updates import CompanyUpdate  # noqa: F401
from models.affiliated_companies import AffiliatedCompany  # noqa: F401
from models.similar_companies import SimilarCompany, SimilarCompanyLink  # noqa: F401
from models.migration_runs import MigrationRun  # noqa: F401

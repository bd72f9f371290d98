from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint

from models import Base


class SimilarCompany(Base):
    """Similar company shared across all profiles that list it.

    Identity is the full (name, linkedin_url, industry, location) tuple after
    sentinel defaults are applied, so the same company listed by two profiles
    is stored once.
    """

    __tablename__ = "similar_companies"
    __table_args__ = (
        UniqueConstraint(
            "name",
            "linkedin_url",
            "industry",
            "location",
            name="uq_similar_companies_identity",
        ),
    )

    similar_companies_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(500), nullable=False)
    linkedin_url = Column(String(500), nullable=False)
    industry = Column(String(500), nullable=False)
    location = Column(String(500), nullable=False)


class SimilarCompanyLink(Base):
    __tablename__ = "similar_companies_junction"
    __table_args__ = (
        UniqueConstraint(
            "company_id",
            "similar_companies_id",
            name="uq_similar_companies_junction_company_similar",
        ),
    )

    unique_id = Column(Integer, primary_key=True, autoincrement=True)
    similar_companies_id = Column(
        Integer,
        ForeignKey("similar_companies.similar_companies_id"),
        nullable=False,
    )
    company_id = Column(
        Integer, ForeignKey("companies.company_id"), nullable=False, index=True
    )

from models import Base
from sqlalchemy import Column, ForeignKey, Integer, String


class AffiliatedCompany(Base):
    """Affiliated company as listed on one company's profile (not shared)."""

    __tablename__ = "affiliated_companies"

    affiliated_companies_id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(
        Integer, ForeignKey("companies.company_id"), nullable=False, index=True
    )
    name = Column(String(500), nullable=False)
    linkedin_url = Column(String(500), nullable=False)
    industry = Column(String(500), nullable=False)
    location = Column(String(500), nullable=False)

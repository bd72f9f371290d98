from models import Base
from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint


class Specialty(Base):
    """Distinct specialty text (trimmed, case preserved)."""

    __tablename__ = "specialty"
    __table_args__ = (
        UniqueConstraint("specialty_name", name="uq_specialty_name"),
    )

    specialty_name_id = Column(Integer, primary_key=True, autoincrement=True)
    specialty_name = Column(String(255), nullable=False)


class CompanySpecialty(Base):
    __tablename__ = "company_specialty"
    __table_args__ = (
        UniqueConstraint(
            "company_id",
            "specialty_name_id",
            name="uq_company_specialty_company_specialty",
        ),
    )

    unique_id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(
        Integer, ForeignKey("companies.company_id"), nullable=False, index=True
    )
    specialty_name_id = Column(
        Integer, ForeignKey("specialty.specialty_name_id"), nullable=False
    )

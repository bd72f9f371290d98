from models import Base
from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint


class CompanyTypeName(Base):
    """Distinct company type, e.g. "Privately Held" or "Public Company"."""

    __tablename__ = "type"
    __table_args__ = (
        UniqueConstraint("company_type_name", name="uq_type_company_type_name"),
    )

    company_type_id = Column(Integer, primary_key=True, autoincrement=True)
    company_type_name = Column(String(255), nullable=False)


class CompanyTypeLink(Base):
    __tablename__ = "company_type"
    __table_args__ = (
        UniqueConstraint(
            "company_id",
            "company_type_id",
            name="uq_company_type_company_type",
        ),
    )

    unique_id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(
        Integer, ForeignKey("companies.company_id"), nullable=False, index=True
    )
    company_type_id = Column(
        Integer, ForeignKey("type.company_type_id"), nullable=False
    )

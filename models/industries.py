from models import Base
from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint


class Industry(Base):
    __tablename__ = "industry"
    __table_args__ = (
        UniqueConstraint("industry_name", name="uq_industry_name"),
    )

    industry_id = Column(Integer, primary_key=True, autoincrement=True)
    industry_name = Column(String(255), nullable=False)


class CompanyIndustry(Base):
    # Junction between companies and industries; reports query it as industry_type.
    __tablename__ = "industry_type"
    __table_args__ = (
        UniqueConstraint(
            "company_id",
            "industry_id",
            name="uq_industry_type_company_industry",
        ),
    )

    unique_id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(
        Integer, ForeignKey("companies.company_id"), nullable=False, index=True
    )
    industry_id = Column(Integer, ForeignKey("industry.industry_id"), nullable=False)

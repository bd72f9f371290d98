from models import Base
from sqlalchemy import Column, Date, ForeignKey, Integer, String, Text


class CompanyUpdate(Base):
    """A company feed post. Every column is filled, using sentinels when absent."""

    __tablename__ = "company_updates"

    update_id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(
        Integer, ForeignKey("companies.company_id"), nullable=False, index=True
    )
    article_link = Column(String(500), nullable=False)
    image = Column(String(500), nullable=False)
    posted_on = Column(Date, nullable=False)
    update_text = Column(Text, nullable=False)
    total_likes = Column(Integer, nullable=False)

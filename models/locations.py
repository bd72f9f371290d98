from models import Base
from sqlalchemy import Boolean, Column, ForeignKey, Integer, String


class Location(Base):
    """Office location of a company (one-to-many).

    Rows without a country are never stored.
    """

    __tablename__ = "locations"

    locations_id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(
        Integer, ForeignKey("companies.company_id"), nullable=False, index=True
    )
    country = Column(String(255), nullable=False)
    city = Column(String(255), nullable=True)
    postal_code = Column(String(50), nullable=True)
    address_line1 = Column(String(500), nullable=True)
    is_hq = Column(Boolean, nullable=False, default=False)
    state = Column(String(255), nullable=True)

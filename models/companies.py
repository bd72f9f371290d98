from models import Base
from sqlalchemy import Column, Integer, String, Text


class Company(Base):
    """Normalized company record.

    `company_id` is the id the loader assigned to the `company_raw` row; it is
    copied, never generated here, so every dimension/detail row can be traced
    back to its staging row.
    """

    __tablename__ = "companies"

    company_id = Column(Integer, primary_key=True, autoincrement=False)

    name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    website = Column(String(255), nullable=True)
    tagline = Column(String(255), nullable=True)

    linkedin_internal_id = Column(String(255), nullable=True)
    universal_name_id = Column(String(255), nullable=True)
    search_id = Column(String(255), nullable=True)
    profile_pic_url = Column(String(500), nullable=True)
    background_cover_image_url = Column(String(500), nullable=True)

    founded_year = Column(Integer, nullable=True)
    follower_count = Column(Integer, nullable=True)

    # Parsed from the raw `company_size` pair, e.g. [51, 200]; max is NULL for "10001+".
    company_size_min = Column(Integer, nullable=True)
    company_size_max = Column(Integer, nullable=True)
    company_size_on_linkedin = Column(Integer, nullable=True)

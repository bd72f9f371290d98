from models import Base
from sqlalchemy import Column, Integer, String, Text


class CompanyRaw(Base):
    """Wide staging row for one provider company profile.

    Written by `load_to_db.py`. Nested provider values (arrays, objects) are
    stored as JSON text; everything else as plain text, exactly as received.
    `company_id` is assigned on insert and carried over unchanged to
    `companies.company_id`.
    """

    __tablename__ = "company_raw"

    company_id = Column(Integer, primary_key=True, autoincrement=True)

    linkedin_internal_id = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    website = Column(String(255), nullable=True)
    industry = Column(String(255), nullable=True)
    company_size = Column(String(50), nullable=True)  # JSON pair, e.g. "[51, 200]"
    company_size_on_linkedin = Column(String(50), nullable=True)
    hq = Column(Text, nullable=True)
    company_type = Column(String(255), nullable=True)
    founded_year = Column(String(10), nullable=True)
    specialities = Column(Text, nullable=True)  # JSON array of strings
    locations = Column(Text, nullable=True)  # JSON array of objects
    name = Column(String(255), nullable=True)
    tagline = Column(String(255), nullable=True)
    universal_name_id = Column(String(255), nullable=True)
    profile_pic_url = Column(String(500), nullable=True)
    background_cover_image_url = Column(String(500), nullable=True)
    search_id = Column(String(255), nullable=True)
    similar_companies = Column(Text, nullable=True)
    affiliated_companies = Column(Text, nullable=True)
    updates = Column(Text, nullable=True)
    follower_count = Column(String(50), nullable=True)
    acquisitions = Column(Text, nullable=True)
    exit_data = Column(Text, nullable=True)
    extra = Column(Text, nullable=True)
    funding_data = Column(Text, nullable=True)
    categories = Column(Text, nullable=True)
    customer_list = Column(Text, nullable=True)


# Provider keys accepted by the loader, in table order.
RAW_COLUMNS: tuple[str, ...] = tuple(
    c.name for c in CompanyRaw.__table__.columns if c.name != "company_id"
)

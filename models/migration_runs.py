from models import Base
from sqlalchemy import Column, DateTime, Integer, String, Text

from utils.time_utils import utcnow_sa_default


class MigrationRun(Base):
    """Ledger of migration stage executions.

    - stage: stage name (see jobs.migrate_companies.STAGES)
    - status: 'running', 'ok' or 'failed' (dry runs are not recorded)
    - records_seen: raw company rows visited by the stage
    - rows_written: best-effort count of rows inserted/updated by the stage
    - error: exception summary for failed runs
    """

    __tablename__ = "migration_runs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    stage = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default="running")
    records_seen = Column(Integer, nullable=False, default=0)
    rows_written = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime, nullable=False, default=utcnow_sa_default)
    finished_at = Column(DateTime, nullable=True)
    error = Column(Text, nullable=True)

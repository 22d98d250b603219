# estimator/database/models.py

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, JSON, String

from estimator.database.core import Base


def _utcnow():
    return datetime.now(timezone.utc)


class SettingRecord(Base):
    """One admin settings document (a whole rule table), replaced wholesale on save."""
    __tablename__ = "settings"

    key = Column(String(64), primary_key=True)
    value = Column(JSON, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<SettingRecord key={self.key} v{self.version}>"

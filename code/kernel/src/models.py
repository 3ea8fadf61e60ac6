"""
OnceDrop Database Models
SQLAlchemy model definitions for everything that is persisted
"""

from sqlalchemy import Column, String, Boolean, BigInteger
from sqlalchemy.orm import declarative_base

from config.settings import GATE_TABLE_NAME

Base = declarative_base()


# =============================================================================
# Drop Gate
# =============================================================================

class OnceDropRecord(Base):
    """One row per gate key: has the reward been dispensed, when and to whom."""
    __tablename__ = GATE_TABLE_NAME

    keyname = Column(String(64), primary_key=True)
    dropped = Column(Boolean, nullable=False, default=False)
    last_drop_time = Column(BigInteger, nullable=False, default=0)
    last_killer = Column(String(64), nullable=True)

    def __repr__(self):
        return (
            f"<OnceDropRecord {self.keyname} dropped={self.dropped} "
            f"last_drop_time={self.last_drop_time} last_killer={self.last_killer!r}>"
        )

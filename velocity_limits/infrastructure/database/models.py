"""SQLAlchemy ORM models for the load ledger"""

from datetime import datetime, timezone
from sqlalchemy import Column, Text, BigInteger, Boolean, DateTime, Integer, Index, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """Stores instants as naive UTC and returns them timezone-aware"""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("UTCDateTime requires a timezone-aware datetime")
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class CustomerLoad(Base):
    """One load attempt, accepted or rejected"""

    __tablename__ = "customer_load"
    __table_args__ = (
        UniqueConstraint("load_id", "customer_id", name="uq_customer_load_key"),
        Index("ix_customer_load_customer_time", "customer_id", "load_time"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    load_id = Column(Text, nullable=False)
    customer_id = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)  # exact minor units
    load_time = Column(UTCDateTime, nullable=False)
    accepted = Column(Boolean, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

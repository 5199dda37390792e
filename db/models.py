"""
Database Models Module

This module defines the SQLAlchemy ORM model backing the record storage
service: every bank account, credit card and payment record is one row holding
an opaque JSON document.
"""

from datetime import UTC, datetime

from sqlalchemy import JSON, Column, DateTime, Index, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class StoredRecord(Base):
    """Model representing one opaque storage record."""

    __tablename__ = "storage_records"
    __table_args__ = (Index("ix_storage_records_type_created", "record_type", "created_at"),)

    record_type = Column(String(50), primary_key=True)
    id = Column(String(64), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    def __repr__(self):
        return f"<StoredRecord(record_type={self.record_type!r}, id={self.id!r})>"

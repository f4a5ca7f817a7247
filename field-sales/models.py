# models.py
from datetime import timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

from utils import ensure_timezone_aware

Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """Stores instants as UTC and hands them back timezone-aware."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return ensure_timezone_aware(value).astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return ensure_timezone_aware(value).astimezone(timezone.utc)


class User(Base):
    __tablename__ = 'users'

    id = Column(String, primary_key=True)
    name = Column(String, nullable=True)
    role = Column(String, nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)


class AttendanceEvent(Base):
    __tablename__ = 'attendance'

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)
    timestamp = Column(UTCDateTime, nullable=False, index=True)


class Visit(Base):
    __tablename__ = 'visits'

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    account_id = Column(String, nullable=False)
    account_name = Column(String, nullable=True)
    account_type = Column(String, nullable=False)
    timestamp = Column(UTCDateTime, nullable=False, index=True)
    purpose = Column(String, nullable=True)
    photos = Column(JSON, nullable=False, default=list)


class SheetsSale(Base):
    __tablename__ = 'sheets_sales'

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    # Calendar day string, never converted between zones.
    date = Column(String(10), nullable=False, index=True)
    catalog = Column(String, nullable=False)
    sheets_count = Column(Integer, nullable=False, default=0)
    verified = Column(Boolean, nullable=False, default=False)


class Expense(Base):
    __tablename__ = 'expenses'

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    date = Column(String(10), nullable=False, index=True)
    items = Column(JSON, nullable=False, default=list)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String, nullable=False, default="pending")


class DSRReport(Base):
    __tablename__ = 'dsr_reports'

    id = Column(String, primary_key=True)  # {user_id}_{date}
    user_id = Column(String, nullable=False, index=True)
    date = Column(String(10), nullable=False, index=True)
    check_in_at = Column(UTCDateTime, nullable=True)
    check_out_at = Column(UTCDateTime, nullable=True)
    total_visits = Column(Integer, nullable=False, default=0)
    visit_ids = Column(JSON, nullable=False, default=list)
    was_active = Column(Boolean, nullable=False, default=False)
    activity_count = Column(Integer, nullable=False, default=0)
    sheets_sales = Column(JSON, nullable=False, default=list)
    total_sheets_sold = Column(Integer, nullable=False, default=0)
    expenses = Column(JSON, nullable=False, default=list)
    total_expenses = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String, nullable=False)
    reviewed_by = Column(String, nullable=True)
    reviewed_at = Column(UTCDateTime, nullable=True)
    manager_comments = Column(String, nullable=True)
    resubmitted_at = Column(UTCDateTime, nullable=True)
    generated_at = Column(UTCDateTime, nullable=False)


class Target(Base):
    __tablename__ = 'targets'

    id = Column(String, primary_key=True)  # {user_id}_{month}
    user_id = Column(String, nullable=False, index=True)
    month = Column(String(7), nullable=False, index=True)
    targets_by_catalog = Column(JSON, nullable=False, default=dict)
    targets_by_account_type = Column(JSON, nullable=False, default=dict)
    auto_renew = Column(Boolean, nullable=False, default=False)
    source_target_id = Column(String, nullable=True)
    created_by = Column(String, nullable=True)
    created_by_name = Column(String, nullable=True)
    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, server_default=func.now())

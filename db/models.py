"""
db/models.py

SQLAlchemy 2.0 async ORM model definitions for the local replica of the remote store.
Every synced row carries the remote identifier it is upserted by.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from config import settings

# Async engine with connection pool settings
engine = create_async_engine(
    f"mysql+aiomysql://{settings.mysql_user}:{settings.mysql_password}"
    f"@{settings.mysql_host}:{settings.mysql_port}/{settings.mysql_db}",
    pool_size=10,
    max_overflow=20,
    pool_pre_ping=True,
)

AsyncSessionLocal = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class GlucoseReading(Base):
    """Glucose readings received from the remote store."""

    __tablename__ = "glucose_readings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    remote_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    value: Mapped[float] = mapped_column(Float, nullable=False)  # mg/dL
    raw: Mapped[float | None] = mapped_column(Float, nullable=True)
    trend_arrow: Mapped[str | None] = mapped_column(String(20), nullable=True)
    source_sensor: Mapped[str | None] = mapped_column(String(40), nullable=True)
    is_valid: Mapped[bool] = mapped_column(Boolean, default=True)
    utc_offset: Mapped[int | None] = mapped_column(Integer, nullable=True)
    synced_at: Mapped[datetime | None] = mapped_column(DateTime, default=datetime.utcnow)


class TreatmentRecord(Base):
    """Treatments of every kind; the canonical record is kept as JSON in `payload`."""

    __tablename__ = "treatments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    remote_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    is_valid: Mapped[bool] = mapped_column(Boolean, default=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    synced_at: Mapped[datetime | None] = mapped_column(DateTime, default=datetime.utcnow)


class FoodItem(Base):
    """Food catalog entries."""

    __tablename__ = "foods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    remote_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    subcategory: Mapped[str | None] = mapped_column(String(100), nullable=True)
    portion: Mapped[float] = mapped_column(Float, nullable=False)
    carbs: Mapped[int] = mapped_column(Integer, nullable=False)
    gi: Mapped[int | None] = mapped_column(Integer, nullable=True)
    energy: Mapped[int | None] = mapped_column(Integer, nullable=True)
    protein: Mapped[int | None] = mapped_column(Integer, nullable=True)
    fat: Mapped[int | None] = mapped_column(Integer, nullable=True)
    unit: Mapped[str] = mapped_column(String(10), default="g")
    is_valid: Mapped[bool] = mapped_column(Boolean, default=True)

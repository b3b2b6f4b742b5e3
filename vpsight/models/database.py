"""
SQLAlchemy Database Models for VPSight

Defines the database schema for rented VPS instances and their billing notes.
"""

from datetime import datetime
from pathlib import Path
from typing import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import Column, Integer, String, DateTime, SmallInteger, Index
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from ..config import settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base"""
    pass


class VpsInstance(Base):
    """
    A rented virtual server tracked by the dashboard.

    Billing notes are stored as the operator typed them: dates as
    YYYY-MM-DD strings and the cycle as free text ("Monthly", "2 years").
    """
    __tablename__ = "vps_instances"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    type = Column(String(100), nullable=True)
    group_name = Column(String(100), nullable=True, index=True)
    ip_address = Column(String(64), nullable=True)
    country_region = Column(String(100), nullable=True)

    # Agent (reported by the remote agent, not edited in the admin area)
    agent_version = Column(String(50), nullable=True)
    secret = Column(String(64), nullable=False, unique=True)
    install_command = Column(String(500), nullable=False)

    # Billing notes
    note_billing_start_date = Column(String(10), nullable=True)
    note_billing_end_date = Column(String(10), nullable=True)
    note_billing_cycle = Column(String(50), nullable=True)
    note_billing_amount = Column(String(50), nullable=True)

    # Plan notes
    note_plan_bandwidth = Column(String(50), nullable=True)
    note_plan_traffic_type = Column(SmallInteger, nullable=True)  # 0 both, 1 outbound, 2 inbound

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index('idx_vps_billing_end', 'note_billing_end_date'),
    )

    def __repr__(self):
        return f"<VpsInstance(id={self.id}, name={self.name}, end={self.note_billing_end_date})>"


def _engine_options() -> dict:
    if settings.database.is_sqlite:
        # One connection per session; aiosqlite connections must not outlive their event loop
        return {"poolclass": NullPool}
    return {
        "pool_size": settings.database.pool_size,
        "max_overflow": settings.database.max_overflow,
    }


# Database engine and session factory
engine = create_async_engine(
    settings.database.url,
    echo=settings.server.debug,
    **_engine_options()
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def init_db():
    """Initialize the database - create all tables"""
    if settings.database.is_sqlite:
        Path(settings.database.sqlite_path).parent.mkdir(parents=True, exist_ok=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Context manager for database session"""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

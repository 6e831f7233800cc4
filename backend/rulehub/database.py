"""Database setup and session management."""

import logging
from datetime import datetime, timezone
from typing import AsyncGenerator

from sqlalchemy import Boolean, DateTime, Index, Integer, JSON, String, Text, UniqueConstraint, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from rulehub.config import settings

logger = logging.getLogger(__name__)

# Current schema version - increment when making schema changes
SCHEMA_VERSION = 2  # v1 = rule catalog, v2 = wizard configurations and generated packages


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class SchemaVersion(Base):
    """Tracks database schema version for safe migrations."""

    __tablename__ = "schema_version"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    version: Mapped[int] = mapped_column(Integer, default=1)
    applied_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)


class RuleRecord(Base):
    """A coding rule in the catalog."""

    __tablename__ = "rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(300))
    slug: Mapped[str] = mapped_column(String(300), index=True)
    content: Mapped[str] = mapped_column(Text)
    tags: Mapped[list | None] = mapped_column(JSON, nullable=True)
    compatibility: Mapped[dict | None] = mapped_column(JSON, nullable=True)  # frameworks, aiAssistants, ides, globs
    always_apply: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class RuleCompatibilityRecord(Base):
    """Technology compatibility side-table for rules."""

    __tablename__ = "rule_compatibility"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rule_id: Mapped[str] = mapped_column(String(36), index=True)  # References rules.id
    technology: Mapped[str] = mapped_column(String(100))
    version_pattern: Mapped[str | None] = mapped_column(String(50), nullable=True)
    compatibility_type: Mapped[str | None] = mapped_column(String(20), nullable=True)  # required, recommended, optional


class RuleDependencyRecord(Base):
    """Pairwise dependency/conflict declaration between two rules."""

    __tablename__ = "rule_dependencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rule_id: Mapped[str] = mapped_column(String(36), index=True)
    depends_on_rule_id: Mapped[str] = mapped_column(String(36), index=True)
    dependency_type: Mapped[str] = mapped_column(String(20))  # requires, conflicts, enhances
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("rule_id", "depends_on_rule_id", "dependency_type", name="uq_rule_dependency"),
    )


class WizardConfigurationRecord(Base):
    """A persisted setup-wizard configuration (immutable after insert)."""

    __tablename__ = "wizard_configurations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    session_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    stack_choices: Mapped[dict] = mapped_column(JSON)
    language_choices: Mapped[dict] = mapped_column(JSON)
    tool_preferences: Mapped[dict] = mapped_column(JSON)
    environment_details: Mapped[dict] = mapped_column(JSON)
    output_format: Mapped[str] = mapped_column(String(20))
    custom_requirements: Mapped[str | None] = mapped_column(Text, nullable=True)
    generation_timestamp: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


class GeneratedPackageRecord(Base):
    """Descriptor of a generated rule package artifact."""

    __tablename__ = "generated_packages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    configuration_id: Mapped[str] = mapped_column(String(36), index=True)  # References wizard_configurations.id
    package_type: Mapped[str] = mapped_column(String(20))  # bash, zip, config
    download_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    file_size: Mapped[int] = mapped_column(Integer, default=0)
    rule_count: Mapped[int] = mapped_column(Integer, default=0)
    download_count: Mapped[int] = mapped_column(Integer, default=0)
    expires_at: Mapped[datetime] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime)

    __table_args__ = (
        Index("ix_packages_expires", "expires_at"),
    )


# Engine and session factory
engine = create_async_engine(settings.database_url, echo=settings.debug)
async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def _record_schema_version(session: AsyncSession) -> None:
    """Insert or bump the single schema_version row."""
    current = (await session.execute(select(SchemaVersion).limit(1))).scalar_one_or_none()

    if current is None:
        session.add(SchemaVersion(id=1, version=SCHEMA_VERSION, description=f"Initial schema v{SCHEMA_VERSION}"))
        logger.info(f"Database initialized with schema version {SCHEMA_VERSION}")
    elif current.version < SCHEMA_VERSION:
        previous = current.version
        current.version = SCHEMA_VERSION
        current.applied_at = datetime.now(timezone.utc).replace(tzinfo=None)
        current.description = f"Upgraded from v{previous} to v{SCHEMA_VERSION}"
        logger.info(f"Database schema upgraded from v{previous} to v{SCHEMA_VERSION}")
    else:
        return

    await session.commit()


async def init_db() -> None:
    """Create missing tables and record the schema version.

    Safe to call on every startup; create_all only adds tables that are absent.
    """
    settings.data_dir.mkdir(parents=True, exist_ok=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        try:
            await _record_schema_version(session)
        except Exception as e:
            logger.warning(f"Schema version check failed: {e}")
            await session.rollback()


async def get_schema_version() -> int:
    """Get the current database schema version."""
    async with async_session_factory() as session:
        result = await session.execute(select(SchemaVersion).limit(1))
        version_record = result.scalar_one_or_none()
        return version_record.version if version_record else 0


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting database sessions."""
    async with async_session_factory() as session:
        yield session


async def close_db() -> None:
    """Close database connections gracefully."""
    await engine.dispose()

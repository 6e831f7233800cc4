"""Repositories for the rule catalog, wizard configurations and packages.

Database-backed implementations of the collaborator interfaces used by the
generation engine.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

import rulehub.database as db_module
from rulehub.database import (
    GeneratedPackageRecord,
    RuleCompatibilityRecord,
    RuleDependencyRecord,
    RuleRecord,
    WizardConfigurationRecord,
)
from rulehub.generation.errors import RepositoryError
from rulehub.generation.interfaces import (
    ConfigurationStoreProtocol,
    PackageStoreProtocol,
    RuleRepositoryProtocol,
)
from rulehub.generation.models import (
    GeneratedPackage,
    Rule,
    RuleCompatibility,
    RuleDependency,
    WizardConfiguration,
    generate_session_id,
)


def get_session():
    """Get the current session factory (supports test patching)."""
    return db_module.async_session_factory

logger = logging.getLogger(__name__)


def _to_db_time(value: datetime) -> datetime:
    """Store timestamps as naive UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_db_time(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _rule_from_record(record: RuleRecord, compat: list[RuleCompatibilityRecord] | None = None) -> Rule:
    return Rule(
        id=record.id,
        title=record.title,
        slug=record.slug,
        content=record.content,
        tags=record.tags,
        compatibility=record.compatibility,
        always_apply=record.always_apply,
        compatibility_records=[
            RuleCompatibility(
                technology=c.technology,
                version_pattern=c.version_pattern,
                compatibility_type=c.compatibility_type,
            )
            for c in compat or []
        ],
    )


def _package_from_record(record: GeneratedPackageRecord) -> GeneratedPackage:
    return GeneratedPackage(
        id=record.id,
        configuration_id=record.configuration_id,
        package_type=record.package_type,
        download_url=record.download_url,
        file_size=record.file_size,
        rule_count=record.rule_count,
        download_count=record.download_count,
        expires_at=_from_db_time(record.expires_at),
        created_at=_from_db_time(record.created_at),
    )


# =============================================================================
# Rule Repository
# =============================================================================


class RuleRepository(RuleRepositoryProtocol):
    """Repository for the rule catalog and rule dependencies."""

    async def fetch_all_rules_with_compatibility(self) -> list[Rule]:
        """Get every rule with its compatibility side-table rows."""
        async with get_session()() as db:
            rules = (await db.execute(select(RuleRecord).order_by(RuleRecord.title))).scalars().all()
            compat_rows = (await db.execute(select(RuleCompatibilityRecord))).scalars().all()

        by_rule: dict[str, list[RuleCompatibilityRecord]] = {}
        for row in compat_rows:
            by_rule.setdefault(row.rule_id, []).append(row)

        return [_rule_from_record(r, by_rule.get(r.id)) for r in rules]

    async def fetch_conflict_edges(self, rule_ids: list[str]) -> list[RuleDependency]:
        """Get dependency edges originating from any of the given rules."""
        if not rule_ids:
            return []
        async with get_session()() as db:
            result = await db.execute(
                select(RuleDependencyRecord).where(RuleDependencyRecord.rule_id.in_(rule_ids))
            )
            return [
                RuleDependency(
                    rule_id=row.rule_id,
                    depends_on_rule_id=row.depends_on_rule_id,
                    dependency_type=row.dependency_type,
                )
                for row in result.scalars().all()
            ]

    async def list_rules(self, tag: str | None = None, limit: int = 100, offset: int = 0) -> list[Rule]:
        """List rules ordered by title, optionally filtered by tag."""
        rules = await self.fetch_all_rules_with_compatibility()
        if tag:
            wanted = tag.lower()
            rules = [r for r in rules if wanted in (t.lower() for t in r.tag_list)]
        return rules[offset:offset + limit]

    async def get_rule(self, rule_id: str) -> Rule | None:
        """Get a rule by ID."""
        async with get_session()() as db:
            record = await db.get(RuleRecord, rule_id)
            if record is None:
                return None
            compat = (
                await db.execute(
                    select(RuleCompatibilityRecord).where(RuleCompatibilityRecord.rule_id == rule_id)
                )
            ).scalars().all()
            return _rule_from_record(record, list(compat))

    async def create_rule(self, rule: Rule) -> Rule:
        """Insert a rule and its compatibility rows."""
        async with get_session()() as db:
            db.add(
                RuleRecord(
                    id=rule.id,
                    title=rule.title,
                    slug=rule.slug,
                    content=rule.content,
                    tags=rule.tags,
                    compatibility=rule.compatibility,
                    always_apply=rule.always_apply,
                )
            )
            for compat in rule.compatibility_records:
                db.add(
                    RuleCompatibilityRecord(
                        rule_id=rule.id,
                        technology=compat.technology,
                        version_pattern=compat.version_pattern,
                        compatibility_type=compat.compatibility_type,
                    )
                )
            await db.commit()
        logger.info(f"Created rule: {rule.id}")
        return rule

    async def delete_rule(self, rule_id: str) -> bool:
        """Delete a rule together with its compatibility rows and dependency edges."""
        async with get_session()() as db:
            result = await db.execute(delete(RuleRecord).where(RuleRecord.id == rule_id))
            if result.rowcount == 0:
                return False
            await db.execute(delete(RuleCompatibilityRecord).where(RuleCompatibilityRecord.rule_id == rule_id))
            await db.execute(
                delete(RuleDependencyRecord).where(
                    (RuleDependencyRecord.rule_id == rule_id)
                    | (RuleDependencyRecord.depends_on_rule_id == rule_id)
                )
            )
            await db.commit()
        logger.info(f"Deleted rule: {rule_id}")
        return True

    async def add_dependency(self, dependency: RuleDependency) -> RuleDependency:
        """Declare a dependency edge between two rules.

        Raises:
            RepositoryError: the same edge is already declared
        """
        async with get_session()() as db:
            db.add(
                RuleDependencyRecord(
                    rule_id=dependency.rule_id,
                    depends_on_rule_id=dependency.depends_on_rule_id,
                    dependency_type=dependency.dependency_type,
                )
            )
            try:
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                raise RepositoryError(
                    f"Dependency already exists: {dependency.rule_id} -> {dependency.depends_on_rule_id}"
                ) from e
        logger.info(
            f"Added {dependency.dependency_type} dependency: "
            f"{dependency.rule_id} -> {dependency.depends_on_rule_id}"
        )
        return dependency

    async def count(self) -> int:
        """Count rules in the catalog."""
        async with get_session()() as db:
            result = await db.execute(select(func.count()).select_from(RuleRecord))
            return result.scalar_one()


# =============================================================================
# Configuration Repository
# =============================================================================


class ConfigurationRepository(ConfigurationStoreProtocol):
    """Repository for persisted wizard configurations."""

    async def insert(self, config: WizardConfiguration) -> str:
        """Persist a configuration and return its ID."""
        config_id = str(uuid.uuid4())
        async with get_session()() as db:
            db.add(
                WizardConfigurationRecord(
                    id=config_id,
                    user_id=config.user_id,
                    session_id=config.session_id or generate_session_id(),
                    stack_choices=config.stack_choices,
                    language_choices=config.language_choices,
                    tool_preferences=config.tool_preferences,
                    environment_details=config.environment_details,
                    output_format=config.output_format,
                    custom_requirements=config.custom_requirements,
                    generation_timestamp=_to_db_time(datetime.now(timezone.utc)),
                )
            )
            await db.commit()
        logger.debug(f"Saved wizard configuration {config_id}")
        return config_id

    async def get(self, config_id: str) -> WizardConfiguration | None:
        """Get a configuration by ID."""
        async with get_session()() as db:
            record = await db.get(WizardConfigurationRecord, config_id)
            if record is None:
                return None
            return WizardConfiguration(
                stack_choices=record.stack_choices,
                language_choices=record.language_choices,
                tool_preferences=record.tool_preferences,
                environment_details=record.environment_details,
                output_format=record.output_format,
                custom_requirements=record.custom_requirements,
                user_id=record.user_id,
                session_id=record.session_id,
            )


# =============================================================================
# Package Repository
# =============================================================================


class PackageRepository(PackageStoreProtocol):
    """Repository for generated package descriptors."""

    async def insert(self, package: GeneratedPackage) -> GeneratedPackage:
        """Persist a package descriptor."""
        async with get_session()() as db:
            record = GeneratedPackageRecord(
                id=package.id,
                configuration_id=package.configuration_id,
                package_type=package.package_type,
                download_url=package.download_url,
                file_size=package.file_size,
                rule_count=package.rule_count,
                download_count=package.download_count,
                expires_at=_to_db_time(package.expires_at),
                created_at=_to_db_time(package.created_at),
            )
            db.add(record)
            await db.commit()
            await db.refresh(record)
            logger.info(f"Stored generated package {package.id}")
            return _package_from_record(record)

    async def get(self, package_id: str) -> GeneratedPackage | None:
        """Get a package by ID."""
        async with get_session()() as db:
            record = await db.get(GeneratedPackageRecord, package_id)
            return _package_from_record(record) if record else None

    async def increment_download_count(self, package_id: str) -> bool:
        """Record one download of a package."""
        async with get_session()() as db:
            result = await db.execute(
                update(GeneratedPackageRecord)
                .where(GeneratedPackageRecord.id == package_id)
                .values(download_count=GeneratedPackageRecord.download_count + 1)
            )
            await db.commit()
            return result.rowcount > 0

"""Tests for database-backed repositories."""

from datetime import datetime, timedelta, timezone

import pytest

from rulehub.generation.errors import RepositoryError
from rulehub.generation.models import (
    GeneratedPackage,
    Rule,
    RuleCompatibility,
    RuleDependency,
    WizardConfiguration,
)
from rulehub.repositories import ConfigurationRepository, PackageRepository, RuleRepository


def make_rule(rule_id: str, title: str, tags=None, **kwargs) -> Rule:
    return Rule(
        id=rule_id,
        title=title,
        slug=title.lower().replace(" ", "-"),
        content=f"{title} content",
        tags=tags or [],
        compatibility=kwargs.get("compatibility", {}),
        always_apply=kwargs.get("always_apply", False),
        compatibility_records=kwargs.get("compatibility_records", []),
    )


def make_package(package_id="pkg-1", expires_in_days=7) -> GeneratedPackage:
    created = datetime.now(timezone.utc)
    return GeneratedPackage(
        id=package_id,
        configuration_id="config-1",
        package_type="zip",
        download_url="http://localhost:8000/api/packages/pkg-1/download",
        file_size=1234,
        rule_count=3,
        expires_at=created + timedelta(days=expires_in_days),
        created_at=created,
    )


class TestRuleRepository:
    """Tests for the rule catalog repository."""

    @pytest.mark.asyncio
    async def test_create_and_fetch_with_compatibility(self, test_db):
        """Test rules come back with their compatibility rows."""
        repo = RuleRepository()
        await repo.create_rule(make_rule(
            "r1",
            "React Hooks",
            tags=["react"],
            compatibility={"frameworks": ["react"]},
            compatibility_records=[RuleCompatibility("react", ">=18", "required")],
        ))
        await repo.create_rule(make_rule("r2", "Clean Code", always_apply=True))

        rules = await repo.fetch_all_rules_with_compatibility()

        assert [r.id for r in rules] == ["r2", "r1"]
        react = rules[1]
        assert react.tags == ["react"]
        assert react.compatibility == {"frameworks": ["react"]}
        assert react.compatibility_records == [RuleCompatibility("react", ">=18", "required")]
        assert rules[0].always_apply is True

    @pytest.mark.asyncio
    async def test_get_rule(self, test_db):
        """Test getting a rule by id."""
        repo = RuleRepository()
        await repo.create_rule(make_rule("r1", "React Hooks"))

        assert (await repo.get_rule("r1")).title == "React Hooks"
        assert await repo.get_rule("missing") is None

    @pytest.mark.asyncio
    async def test_list_rules_by_tag(self, test_db):
        """Test listing with a tag filter and pagination."""
        repo = RuleRepository()
        await repo.create_rule(make_rule("r1", "A Rule", tags=["React"]))
        await repo.create_rule(make_rule("r2", "B Rule", tags=["python"]))
        await repo.create_rule(make_rule("r3", "C Rule", tags=["react"]))

        assert [r.id for r in await repo.list_rules(tag="react")] == ["r1", "r3"]
        assert [r.id for r in await repo.list_rules(limit=1, offset=1)] == ["r2"]

    @pytest.mark.asyncio
    async def test_conflict_edges(self, test_db):
        """Test edges are returned for rules on the originating side."""
        repo = RuleRepository()
        await repo.add_dependency(RuleDependency("A", "B", "conflicts"))
        await repo.add_dependency(RuleDependency("C", "A", "requires"))

        edges = await repo.fetch_conflict_edges(["A", "B"])

        assert edges == [RuleDependency("A", "B", "conflicts")]
        assert await repo.fetch_conflict_edges([]) == []

    @pytest.mark.asyncio
    async def test_duplicate_edge_rejected(self, test_db):
        """Test the same edge cannot be declared twice."""
        repo = RuleRepository()
        await repo.add_dependency(RuleDependency("A", "B", "conflicts"))

        with pytest.raises(RepositoryError):
            await repo.add_dependency(RuleDependency("A", "B", "conflicts"))

        await repo.add_dependency(RuleDependency("A", "B", "enhances"))
        assert len(await repo.fetch_conflict_edges(["A"])) == 2

    @pytest.mark.asyncio
    async def test_delete_rule_removes_edges(self, test_db):
        """Test deleting a rule removes its dependency edges."""
        repo = RuleRepository()
        await repo.create_rule(make_rule("A", "A Rule"))
        await repo.create_rule(make_rule("B", "B Rule"))
        await repo.add_dependency(RuleDependency("B", "A", "conflicts"))

        assert await repo.delete_rule("A") is True
        assert await repo.delete_rule("A") is False
        assert await repo.fetch_conflict_edges(["B"]) == []
        assert await repo.count() == 1


class TestConfigurationRepository:
    """Tests for wizard configuration persistence."""

    @pytest.mark.asyncio
    async def test_insert_and_get(self, test_db):
        """Test a configuration round-trips and gets a session id."""
        repo = ConfigurationRepository()
        config = WizardConfiguration(
            stack_choices={"react": True},
            language_choices={"typescript": True},
            tool_preferences={},
            environment_details={"targetIde": "cursor"},
            output_format="bash",
        )

        config_id = await repo.insert(config)
        stored = await repo.get(config_id)

        assert stored.stack_choices == {"react": True}
        assert stored.environment_details == {"targetIde": "cursor"}
        assert stored.output_format == "bash"
        assert stored.session_id.startswith("session_")
        assert await repo.get("missing") is None

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, test_db):
        """Test every insert creates a new configuration."""
        repo = ConfigurationRepository()
        config = WizardConfiguration(session_id="session_1_abc")

        assert await repo.insert(config) != await repo.insert(config)


class TestPackageRepository:
    """Tests for generated package persistence."""

    @pytest.mark.asyncio
    async def test_insert_and_get(self, test_db):
        """Test package descriptors keep timezone-aware timestamps."""
        repo = PackageRepository()
        package = make_package()

        stored = await repo.insert(package)
        fetched = await repo.get("pkg-1")

        assert stored.id == "pkg-1"
        assert fetched.file_size == 1234
        assert fetched.rule_count == 3
        assert fetched.download_count == 0
        assert fetched.expires_at.tzinfo is not None
        assert abs(fetched.expires_at - package.expires_at) < timedelta(seconds=1)

    @pytest.mark.asyncio
    async def test_increment_download_count(self, test_db):
        """Test downloads are counted."""
        repo = PackageRepository()
        await repo.insert(make_package())

        assert await repo.increment_download_count("pkg-1") is True
        assert await repo.increment_download_count("pkg-1") is True
        assert (await repo.get("pkg-1")).download_count == 2
        assert await repo.increment_download_count("missing") is False

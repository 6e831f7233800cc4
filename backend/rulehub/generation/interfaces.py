"""Collaborator interfaces consumed by the generation engine."""

from rulehub.generation.models import (
    GeneratedPackage,
    Rule,
    RuleDependency,
    UploadResult,
    WizardConfiguration,
)


class RuleRepositoryProtocol:
    """Protocol for rule catalog access."""

    async def fetch_all_rules_with_compatibility(self) -> list[Rule]:
        """Return the full rule catalog with compatibility sub-records."""
        raise NotImplementedError

    async def fetch_conflict_edges(self, rule_ids: list[str]) -> list[RuleDependency]:
        """Return dependency edges whose rule_id is in rule_ids."""
        raise NotImplementedError


class ConfigurationStoreProtocol:
    """Protocol for wizard configuration persistence."""

    async def insert(self, config: WizardConfiguration) -> str:
        """Persist a configuration and return its id."""
        raise NotImplementedError


class PackageStoreProtocol:
    """Protocol for generated package descriptor persistence."""

    async def insert(self, package: GeneratedPackage) -> GeneratedPackage:
        """Persist a package descriptor and return the stored version."""
        raise NotImplementedError


class ArtifactStorageProtocol:
    """Protocol for artifact storage backends."""

    async def upload(self, package_id: str, data: bytes, package_type: str) -> UploadResult:
        """Store artifact bytes and return where they can be downloaded."""
        raise NotImplementedError

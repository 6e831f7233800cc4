"""Rule generation engine.

Matches catalog rules against a wizard configuration and generates a
tailored package, ordered from general to specific rules.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone

from rulehub.generation.classifier import classify_rule, sort_matched_rules
from rulehub.generation.conflicts import resolve_conflicts
from rulehub.generation.emitters import get_emitter
from rulehub.generation.errors import PackageGenerationError, StorageError, UnsupportedFormatError
from rulehub.generation.interfaces import (
    ArtifactStorageProtocol,
    ConfigurationStoreProtocol,
    PackageStoreProtocol,
    RuleRepositoryProtocol,
)
from rulehub.generation.models import GeneratedPackage, MatchedRule, Rule, WizardConfiguration
from rulehub.generation.scorer import UserChoices, score_rule

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_DAYS = 7


def match_rules(rules: list[Rule], config: WizardConfiguration) -> list[MatchedRule]:
    """Score every rule, keep positive scores, classify and sort."""
    choices = UserChoices.from_configuration(config)
    matched: list[MatchedRule] = []

    for rule in rules:
        result = score_rule(rule, choices)
        if result.score > 0:
            matched.append(
                MatchedRule(
                    rule=rule,
                    level=classify_rule(rule),
                    match_score=result.score,
                    match_reasons=result.reasons,
                )
            )

    return sort_matched_rules(matched)


class RuleGenerationEngine:
    """Sequences persistence, matching, conflict resolution, emission and storage.

    Each call is independent: the catalog is fetched fresh and no state is
    kept between calls.
    """

    def __init__(
        self,
        rules: RuleRepositoryProtocol,
        configurations: ConfigurationStoreProtocol,
        packages: PackageStoreProtocol,
        storage: ArtifactStorageProtocol | None = None,
        expiry_days: int = DEFAULT_EXPIRY_DAYS,
    ) -> None:
        self.rules = rules
        self.configurations = configurations
        self.packages = packages
        self.storage = storage
        self.expiry_days = expiry_days

    async def generate_package(self, config: WizardConfiguration) -> GeneratedPackage:
        """Generate a complete rule package for a wizard configuration.

        Raises:
            UnsupportedFormatError: no emitter exists for the output format
            PackageGenerationError: any other fatal step failed
        """
        try:
            configuration_id = await self._save_configuration(config)
            matched = await self.get_compatible_rules(config)
            resolved = await resolve_conflicts(matched, self.rules)

            emitter = get_emitter(config.output_format)
            content = emitter.emit(resolved, config)

            package = await self._store_package(configuration_id, config.output_format, content, resolved)
        except UnsupportedFormatError:
            logger.error(f"Unsupported output format requested: {config.output_format}")
            raise
        except Exception as e:
            logger.error(f"Error generating package: {e}", exc_info=True)
            raise PackageGenerationError() from e

        logger.info(
            "Generated rule package",
            extra={
                "configuration_id": configuration_id,
                "package_id": package.id,
                "package_type": package.package_type,
                "rule_count": package.rule_count,
            },
        )
        return package

    async def get_compatible_rules(self, config: WizardConfiguration) -> list[MatchedRule]:
        """Fetch the catalog and return the sorted matched rules."""
        try:
            rules = await self.rules.fetch_all_rules_with_compatibility()
        except Exception as e:
            logger.error(f"Error fetching rules: {e}")
            raise PackageGenerationError("Failed to fetch rules") from e

        matched = match_rules(rules, config)
        logger.debug(f"Matched {len(matched)} of {len(rules)} rules")
        return matched

    async def _save_configuration(self, config: WizardConfiguration) -> str:
        try:
            return await self.configurations.insert(config)
        except Exception as e:
            logger.error(f"Error saving wizard configuration: {e}")
            raise PackageGenerationError("Failed to save configuration") from e

    async def _store_package(
        self,
        configuration_id: str,
        package_type: str,
        content: bytes,
        rules: list[MatchedRule],
    ) -> GeneratedPackage:
        package_id = str(uuid.uuid4())
        created_at = datetime.now(timezone.utc)

        download_url: str | None = None
        try:
            if self.storage is None:
                raise StorageError("No artifact storage configured")
            upload = await self.storage.upload(package_id, content, package_type)
            download_url = upload.public_url
        except Exception as e:
            # Package can still be generated without a download URL
            logger.error(f"Error uploading to storage: {e}")

        package = GeneratedPackage(
            id=package_id,
            configuration_id=configuration_id,
            package_type=package_type,
            download_url=download_url,
            file_size=len(content),
            rule_count=len(rules),
            expires_at=created_at + timedelta(days=self.expiry_days),
            created_at=created_at,
            download_count=0,
        )

        try:
            return await self.packages.insert(package)
        except Exception as e:
            logger.error(f"Error storing package: {e}")
            raise PackageGenerationError("Failed to store package") from e

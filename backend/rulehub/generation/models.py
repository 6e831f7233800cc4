"""Data models for rule matching and package generation.

Rules are read-only inputs owned by the repository. Matched rules only exist
for the duration of a single generation call.
"""

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class OutputFormat(str, Enum):
    """Package output formats."""

    BASH = "bash"
    ZIP = "zip"
    CONFIG = "config"


class RuleLevel(str, Enum):
    """Specificity tier of a matched rule, general to specific."""

    GENERAL = "general"
    STACK = "stack"
    LANGUAGE = "language"
    ENVIRONMENT = "environment"

    @property
    def rank(self) -> int:
        return LEVEL_ORDER[self]


LEVEL_ORDER: dict[RuleLevel, int] = {
    RuleLevel.GENERAL: 0,
    RuleLevel.STACK: 1,
    RuleLevel.LANGUAGE: 2,
    RuleLevel.ENVIRONMENT: 3,
}


class DependencyType(str, Enum):
    """Kinds of declared relationships between rules."""

    REQUIRES = "requires"
    CONFLICTS = "conflicts"
    ENHANCES = "enhances"


def generate_session_id() -> str:
    """Build a session id in the form session_<epoch-ms>_<9 base36 chars>."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"session_{int(time.time() * 1000)}_{suffix}"


def _selected(choices: dict[str, Any]) -> list[str]:
    return [key for key, value in choices.items() if value]


@dataclass(frozen=True)
class WizardConfiguration:
    """A user's stack/language/tool/environment selections."""

    stack_choices: dict[str, Any] = field(default_factory=dict)
    language_choices: dict[str, Any] = field(default_factory=dict)
    tool_preferences: dict[str, Any] = field(default_factory=dict)
    environment_details: dict[str, Any] = field(default_factory=dict)
    output_format: str = OutputFormat.ZIP.value
    custom_requirements: str | None = None
    user_id: str | None = None
    session_id: str | None = None

    @property
    def selected_stacks(self) -> list[str]:
        return _selected(self.stack_choices)

    @property
    def selected_languages(self) -> list[str]:
        return _selected(self.language_choices)

    @property
    def selected_tools(self) -> list[str]:
        return _selected(self.tool_preferences)

    @property
    def target_ide(self) -> str:
        return str(self.environment_details.get("targetIde") or "general")

    @property
    def target_ai(self) -> str:
        return str(self.environment_details.get("targetAI") or "general")

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase form embedded in artifacts and API payloads."""
        data: dict[str, Any] = {
            "stackChoices": self.stack_choices,
            "languageChoices": self.language_choices,
            "toolPreferences": self.tool_preferences,
            "environmentDetails": self.environment_details,
            "outputFormat": self.output_format,
        }
        if self.custom_requirements is not None:
            data["customRequirements"] = self.custom_requirements
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WizardConfiguration":
        """Create from a camelCase or snake_case dictionary."""

        def pick(camel: str, snake: str, default: Any = None) -> Any:
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        output_format = pick("outputFormat", "output_format") or OutputFormat.ZIP.value
        if isinstance(output_format, OutputFormat):
            output_format = output_format.value

        return cls(
            stack_choices=dict(pick("stackChoices", "stack_choices") or {}),
            language_choices=dict(pick("languageChoices", "language_choices") or {}),
            tool_preferences=dict(pick("toolPreferences", "tool_preferences") or {}),
            environment_details=dict(pick("environmentDetails", "environment_details") or {}),
            output_format=output_format,
            custom_requirements=pick("customRequirements", "custom_requirements"),
            user_id=pick("userId", "user_id"),
            session_id=pick("sessionId", "session_id"),
        )


@dataclass
class RuleCompatibility:
    """A row of the rule compatibility side-table."""

    technology: str
    version_pattern: str | None = None
    compatibility_type: str | None = None


@dataclass
class Rule:
    """A coding rule as supplied by the rule repository."""

    id: str
    title: str
    slug: str
    content: str
    tags: list[str] | None = None
    compatibility: dict[str, Any] | None = None
    always_apply: bool | None = None
    compatibility_records: list[RuleCompatibility] = field(default_factory=list)

    @property
    def tag_list(self) -> list[str]:
        return [t for t in (self.tags or []) if isinstance(t, str)]

    def compatibility_list(self, key: str) -> list[str]:
        """Get a compatibility list (frameworks, aiAssistants, ides, globs), empty when absent."""
        values = (self.compatibility or {}).get(key) or []
        if isinstance(values, str):
            return [values]
        return [v for v in values if isinstance(v, str)]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Rule":
        """Create from a dictionary (snake_case or camelCase flags)."""
        records = [
            RuleCompatibility(
                technology=r["technology"],
                version_pattern=r.get("version_pattern"),
                compatibility_type=r.get("compatibility_type"),
            )
            for r in data.get("rule_compatibility") or []
        ]
        always_apply = data.get("always_apply", data.get("alwaysApply"))
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            slug=data.get("slug") or "",
            content=data.get("content", ""),
            tags=data.get("tags"),
            compatibility=data.get("compatibility"),
            always_apply=always_apply,
            compatibility_records=records,
        )


@dataclass
class MatchResult:
    """Relevance score of a rule plus the reasons that produced it."""

    score: float = 0.0
    reasons: list[str] = field(default_factory=list)

    def add(self, increment: float, reason: str) -> None:
        self.score += increment
        self.reasons.append(reason)


@dataclass
class MatchedRule:
    """A rule with a positive score against one configuration."""

    rule: Rule
    level: RuleLevel
    match_score: float
    match_reasons: list[str] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.rule.id

    @property
    def title(self) -> str:
        return self.rule.title

    @property
    def slug(self) -> str:
        return self.rule.slug

    @property
    def content(self) -> str:
        return self.rule.content

    @property
    def tags(self) -> list[str]:
        return self.rule.tag_list

    @property
    def always_apply(self) -> bool:
        return bool(self.rule.always_apply)


@dataclass
class RuleDependency:
    """A declared relationship between two rules."""

    rule_id: str
    depends_on_rule_id: str
    dependency_type: str


@dataclass
class UploadResult:
    """Result of storing an artifact."""

    public_url: str
    path: str


@dataclass
class GeneratedPackage:
    """Descriptor of a generated package artifact."""

    id: str
    configuration_id: str
    package_type: str
    file_size: int
    rule_count: int
    expires_at: datetime
    created_at: datetime
    download_url: str | None = None
    download_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase API representation."""
        return {
            "id": self.id,
            "configurationId": self.configuration_id,
            "packageType": self.package_type,
            "downloadUrl": self.download_url,
            "fileSize": self.file_size,
            "ruleCount": self.rule_count,
            "downloadCount": self.download_count,
            "expiresAt": self.expires_at.isoformat(),
            "createdAt": self.created_at.isoformat(),
        }

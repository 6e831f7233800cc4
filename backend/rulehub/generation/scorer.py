"""Relevance scoring of rules against a wizard configuration.

Scoring is additive: every independent match adds a fixed increment and a
human-readable reason. Tag and framework matching is case-insensitive
substring containment in either direction.
"""

from dataclasses import dataclass, field
from typing import Any

from rulehub.generation.models import MatchResult, Rule, WizardConfiguration

ALWAYS_APPLY_WEIGHT = 0.5
STACK_TAG_WEIGHT = 1.0
LANGUAGE_TAG_WEIGHT = 1.0
TOOL_TAG_WEIGHT = 0.8
FRAMEWORK_WEIGHT = 1.2
AI_ASSISTANT_WEIGHT = 0.3

# Assistants whose support makes a rule relevant to every configuration
SUPPORTED_AI_ASSISTANTS = ("vibecoding", "cascade")


@dataclass
class UserChoices:
    """Selected ids decomposed from a wizard configuration."""

    stacks: list[str] = field(default_factory=list)
    languages: list[str] = field(default_factory=list)
    tools: list[str] = field(default_factory=list)
    environment: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_configuration(cls, config: WizardConfiguration) -> "UserChoices":
        return cls(
            stacks=config.selected_stacks,
            languages=config.selected_languages,
            tools=config.selected_tools,
            environment=dict(config.environment_details),
        )


def _contains_either(a: str, b: str) -> bool:
    a, b = a.lower(), b.lower()
    if not a or not b:
        return False
    return a in b or b in a


def score_rule(rule: Rule, choices: UserChoices) -> MatchResult:
    """Compute how well a rule matches the user's choices."""
    result = MatchResult()

    if rule.always_apply:
        result.add(ALWAYS_APPLY_WEIGHT, "Always applicable rule")

    for tag in rule.tag_list:
        lower_tag = tag.lower()

        for stack in choices.stacks:
            if _contains_either(lower_tag, stack):
                result.add(STACK_TAG_WEIGHT, f"Matches stack: {tag}")

        for language in choices.languages:
            if _contains_either(lower_tag, language):
                result.add(LANGUAGE_TAG_WEIGHT, f"Matches language: {tag}")

        for tool in choices.tools:
            if _contains_either(lower_tag, tool):
                result.add(TOOL_TAG_WEIGHT, f"Matches tool: {tag}")

    for framework in rule.compatibility_list("frameworks"):
        for stack in choices.stacks:
            if _contains_either(framework, stack):
                result.add(FRAMEWORK_WEIGHT, f"Compatible framework: {framework}")

    assistants = rule.compatibility_list("aiAssistants")
    if any(name in assistants for name in SUPPORTED_AI_ASSISTANTS):
        result.add(AI_ASSISTANT_WEIGHT, "Compatible with AI assistant")

    return result

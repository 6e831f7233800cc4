"""Rule matching and package generation.

Scores catalog rules against a wizard configuration, resolves declared
conflicts, and renders the result as a bash script, ZIP archive, or JSON
configuration bundle.
"""

from rulehub.generation.classifier import classify_rule, sort_matched_rules
from rulehub.generation.conflicts import remove_conflicts, resolve_conflicts
from rulehub.generation.engine import RuleGenerationEngine, match_rules
from rulehub.generation.errors import (
    PackageGenerationError,
    RepositoryError,
    RuleHubError,
    StorageError,
    UnsupportedFormatError,
)
from rulehub.generation.models import (
    DependencyType,
    GeneratedPackage,
    MatchedRule,
    MatchResult,
    OutputFormat,
    Rule,
    RuleCompatibility,
    RuleDependency,
    RuleLevel,
    UploadResult,
    WizardConfiguration,
)
from rulehub.generation.scorer import UserChoices, score_rule

__all__ = [
    "RuleGenerationEngine",
    "match_rules",
    "score_rule",
    "UserChoices",
    "classify_rule",
    "sort_matched_rules",
    "remove_conflicts",
    "resolve_conflicts",
    "PackageGenerationError",
    "RepositoryError",
    "RuleHubError",
    "StorageError",
    "UnsupportedFormatError",
    "DependencyType",
    "GeneratedPackage",
    "MatchedRule",
    "MatchResult",
    "OutputFormat",
    "Rule",
    "RuleCompatibility",
    "RuleDependency",
    "RuleLevel",
    "UploadResult",
    "WizardConfiguration",
]

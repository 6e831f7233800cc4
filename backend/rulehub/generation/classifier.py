"""Specificity classification and ordering of matched rules."""

from rulehub.generation.models import MatchedRule, Rule, RuleLevel

# Checked in order; the first tier with a keyword hit wins.
LEVEL_KEYWORDS: tuple[tuple[RuleLevel, tuple[str, ...]], ...] = (
    (RuleLevel.ENVIRONMENT, ("node", "npm", "docker", "env", "config")),
    (RuleLevel.LANGUAGE, ("typescript", "javascript", "python", "java")),
    (RuleLevel.STACK, ("react", "vue", "angular", "next", "nuxt")),
)


def classify_rule(rule: Rule) -> RuleLevel:
    """Assign a rule to a specificity tier by keyword search."""
    text = " ".join([rule.title, rule.content, " ".join(rule.tag_list)]).lower()

    for level, keywords in LEVEL_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return level

    return RuleLevel.GENERAL


def sort_matched_rules(rules: list[MatchedRule]) -> list[MatchedRule]:
    """Order rules general-to-specific, highest score first within a tier."""
    return sorted(rules, key=lambda r: (r.level.rank, -r.match_score))

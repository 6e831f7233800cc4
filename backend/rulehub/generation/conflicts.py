"""Conflict resolution between matched rules."""

import logging

from rulehub.generation.interfaces import RuleRepositoryProtocol
from rulehub.generation.models import DependencyType, MatchedRule, RuleDependency

logger = logging.getLogger(__name__)


def _loser(first: MatchedRule, second: MatchedRule) -> str:
    """Pick the rule to drop from a conflicting pair.

    Lower score loses; on equal scores the greater id loses.
    """
    if first.match_score != second.match_score:
        return first.id if first.match_score < second.match_score else second.id
    return max(first.id, second.id)


def remove_conflicts(rules: list[MatchedRule], edges: list[RuleDependency]) -> list[MatchedRule]:
    """Drop the lower-scored endpoint of every conflict edge inside the set."""
    by_id = {rule.id: rule for rule in rules}
    removed: set[str] = set()

    for edge in edges:
        if edge.dependency_type != DependencyType.CONFLICTS.value:
            continue
        if edge.rule_id == edge.depends_on_rule_id:
            continue

        first = by_id.get(edge.rule_id)
        second = by_id.get(edge.depends_on_rule_id)
        if first and second:
            loser = _loser(first, second)
            logger.debug(f"Conflict between {first.id} and {second.id}: dropping {loser}")
            removed.add(loser)

    return [rule for rule in rules if rule.id not in removed]


async def resolve_conflicts(
    rules: list[MatchedRule],
    repository: RuleRepositoryProtocol,
) -> list[MatchedRule]:
    """Resolve declared conflicts, best-effort.

    If the dependency lookup fails the matched set is returned unchanged.
    """
    if not rules:
        return rules

    try:
        edges = await repository.fetch_conflict_edges([rule.id for rule in rules])
    except Exception as e:
        logger.warning(f"Error fetching dependencies, skipping conflict resolution: {e}")
        return rules

    resolved = remove_conflicts(rules, edges)
    if len(resolved) != len(rules):
        logger.info(f"Removed {len(rules) - len(resolved)} conflicting rules")
    return resolved

"""Rules API endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Query

from rulehub.api.models import DependencyCreate, RuleCreate, RuleListItem, RuleResponse, StatusResponse
from rulehub.catalog import example_rules, rule_from_data, seed_catalog
from rulehub.generation.errors import RepositoryError
from rulehub.generation.models import RuleDependency
from rulehub.repositories import RuleRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rules")


@router.get("", response_model=list[RuleListItem])
async def list_all_rules(
    tag: str | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> list[RuleListItem]:
    """List rules.

    Returns rule metadata without full content.
    """
    rules = await RuleRepository().list_rules(tag=tag, limit=limit, offset=offset)
    return [
        RuleListItem(id=r.id, title=r.title, slug=r.slug, tags=r.tag_list, always_apply=bool(r.always_apply))
        for r in rules
    ]


@router.get("/{rule_id}", response_model=RuleResponse)
async def get_rule_by_id(rule_id: str) -> RuleResponse:
    """Get a single rule with full content."""
    rule = await RuleRepository().get_rule(rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail=f"Rule not found: {rule_id}")
    return RuleResponse.from_rule(rule)


@router.post("", response_model=RuleResponse)
async def create_new_rule(data: RuleCreate) -> RuleResponse:
    """Create a new rule."""
    rule = rule_from_data(data.model_dump())
    await RuleRepository().create_rule(rule)
    return RuleResponse.from_rule(rule)


@router.delete("/{rule_id}", response_model=StatusResponse)
async def delete_existing_rule(rule_id: str) -> StatusResponse:
    """Delete a rule."""
    deleted = await RuleRepository().delete_rule(rule_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Rule not found: {rule_id}")
    return StatusResponse(status="deleted")


@router.post("/{rule_id}/dependencies", response_model=StatusResponse)
async def add_rule_dependency(rule_id: str, data: DependencyCreate) -> StatusResponse:
    """Declare that a rule requires, enhances, or conflicts with another rule."""
    if rule_id == data.depends_on_rule_id:
        raise HTTPException(status_code=400, detail="A rule cannot depend on itself")

    repository = RuleRepository()
    for candidate in (rule_id, data.depends_on_rule_id):
        if not await repository.get_rule(candidate):
            raise HTTPException(status_code=404, detail=f"Rule not found: {candidate}")

    try:
        await repository.add_dependency(
            RuleDependency(
                rule_id=rule_id,
                depends_on_rule_id=data.depends_on_rule_id,
                dependency_type=data.dependency_type.value,
            )
        )
    except RepositoryError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return StatusResponse(status="created")


@router.post("/examples", response_model=list[RuleResponse])
async def create_examples() -> list[RuleResponse]:
    """Create example rules.

    Only creates examples if no rules exist yet.
    """
    repository = RuleRepository()
    if await repository.count() > 0:
        raise HTTPException(
            status_code=400,
            detail="Rules already exist. Delete existing rules first to create examples."
        )

    rules = example_rules()
    await seed_catalog(repository, rules)
    return [RuleResponse.from_rule(r) for r in rules]

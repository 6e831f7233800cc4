"""Rule catalog loading and seeding.

Rules can be loaded from YAML files (one rule per file) or created from the
built-in examples for new installations.
"""

import logging
import re
import uuid
from pathlib import Path
from typing import Any

import yaml

from rulehub.generation.models import Rule, RuleCompatibility
from rulehub.repositories import RuleRepository

logger = logging.getLogger(__name__)


def _sanitize_slug(name: str) -> str:
    """Convert a title to a slug."""
    safe = name.lower().strip()
    safe = re.sub(r'\s+', '-', safe)
    safe = re.sub(r'[^a-z0-9\-]', '', safe)
    safe = re.sub(r'-+', '-', safe)
    return safe[:50]


def rule_from_data(data: dict[str, Any]) -> Rule:
    """Build a rule from a loosely structured dictionary (YAML or API payload)."""
    if not data.get("title") or not data.get("content"):
        raise ValueError("Rule requires a title and content")

    records = [
        RuleCompatibility(
            technology=item["technology"],
            version_pattern=item.get("version_pattern"),
            compatibility_type=item.get("compatibility_type"),
        )
        for item in data.get("rule_compatibility") or []
    ]

    return Rule(
        id=str(data.get("id") or uuid.uuid4()),
        title=data["title"],
        slug=data.get("slug") or _sanitize_slug(data["title"]),
        content=data["content"],
        tags=list(data.get("tags") or []),
        compatibility=data.get("compatibility") or {},
        always_apply=bool(data.get("always_apply", data.get("alwaysApply", False))),
        compatibility_records=records,
    )


def load_rules_from_dir(directory: Path) -> list[Rule]:
    """Load every *.yaml / *.yml rule file in a directory."""
    rules = []
    for file_path in sorted([*directory.glob("*.yaml"), *directory.glob("*.yml")]):
        try:
            with open(file_path) as f:
                data = yaml.safe_load(f)
            if data:
                rules.append(rule_from_data(data))
        except (OSError, yaml.YAMLError, ValueError, KeyError) as e:
            logger.warning(f"Failed to load rule {file_path}: {e}")
    return rules


async def seed_catalog(repository: RuleRepository, rules: list[Rule]) -> int:
    """Insert rules whose ids are not yet in the catalog."""
    existing = {rule.id for rule in await repository.fetch_all_rules_with_compatibility()}
    created = 0
    for rule in rules:
        if rule.id in existing:
            continue
        await repository.create_rule(rule)
        created += 1
    return created


EXAMPLE_RULES: list[dict[str, Any]] = [
    {
        "title": "Clean Code Standards",
        "slug": "clean-code-standards",
        "content": """Follow these clean code principles:

1. **Naming**
   - Use descriptive, meaningful names
   - Booleans: is/has/can prefix (isActive, hasPermission)

2. **Functions**
   - Single responsibility - do one thing well
   - Limit parameters (max 3, use objects for more)

3. **Comments**
   - Code should be self-documenting
   - Delete commented-out code""",
        "tags": ["general", "code-quality", "task"],
        "compatibility": {"aiAssistants": ["vibecoding", "cascade"]},
        "always_apply": True,
    },
    {
        "title": "React Component Guidelines",
        "slug": "react-component-guidelines",
        "content": """Write React components as functions:

- Use hooks (useState, useEffect, useMemo, useCallback)
- Extract logic into custom hooks
- Keep components small and focused""",
        "tags": ["react", "frontend", "stack"],
        "compatibility": {"frameworks": ["react", "nextjs"], "ides": ["cursor", "vscode"]},
        "rule_compatibility": [
            {"technology": "react", "version_pattern": ">=18", "compatibility_type": "required"},
        ],
    },
    {
        "title": "TypeScript Strict Mode",
        "slug": "typescript-strict-mode",
        "content": """Enable strict type checking in tsconfig.json:

```tsconfig.json
{
  "compilerOptions": {
    "strict": true,
    "noUncheckedIndexedAccess": true
  }
}
```

Avoid `any` - use `unknown` if a type is truly unknown.""",
        "tags": ["typescript", "language"],
        "compatibility": {"frameworks": ["react", "node"]},
    },
    {
        "title": "ESLint and Prettier Setup",
        "slug": "eslint-prettier-setup",
        "content": """Install the linting toolchain:

```bash
npm install --save-dev eslint prettier eslint-config-prettier
```

Configure ESLint in .eslintrc.json:

```.eslintrc.json
{
  "extends": ["eslint:recommended", "prettier"],
  "rules": {
    "no-unused-vars": "error"
  }
}
```""",
        "tags": ["eslint", "prettier", "tool"],
    },
    {
        "title": "Python Standards",
        "slug": "python-standards",
        "content": """Follow these Python standards:

- Follow PEP 8
- Use type hints for function signatures
- Use pytest for testing""",
        "tags": ["python", "backend", "language"],
    },
]


def example_rules() -> list[Rule]:
    """Build the built-in example rules with fresh ids."""
    return [rule_from_data(data) for data in EXAMPLE_RULES]

"""Content helpers shared by the package emitters.

Covers grouping, category folders, file naming, and extraction of shell
commands and embedded configuration files from rule bodies.
"""

import json
import logging
import re
import secrets
from pathlib import PurePosixPath
from typing import Any

from rulehub.generation.models import LEVEL_ORDER, MatchedRule, RuleLevel

logger = logging.getLogger(__name__)

RULE_CATEGORIES = ("assistants", "languages", "stacks", "tasks", "technologies", "tools")

# (category, tags that select it) checked in order
CATEGORY_TAGS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("assistants", ("ai assistant", "ai-assistant")),
    ("languages", ("language", "languages")),
    ("stacks", ("stack", "stacks")),
    ("tasks", ("task", "tasks")),
    ("technologies", ("technology", "technologies")),
    ("tools", ("tool", "tools")),
)

KNOWN_CONFIG_FILES = (
    "package.json",
    "tsconfig.json",
    ".eslintrc",
    ".prettierrc",
    "Dockerfile",
    "docker-compose.yml",
)

JSON_CONFIG_FILES = (".eslintrc", ".prettierrc", ".babelrc")

SHELL_FENCES = ("bash", "shell", "sh")
COMMAND_PREFIXES = ("npm ", "yarn ", "pnpm ", "mkdir ", "touch ", "echo ")

MAX_FILENAME_LENGTH = 50
ID_SUFFIX_LENGTH = 6

FENCE = "```"
JSON_BLOCK_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")


def group_rules_by_level(rules: list[MatchedRule]) -> dict[RuleLevel, list[MatchedRule]]:
    """Group rules by level, in general-to-specific order, skipping empty levels."""
    groups: dict[RuleLevel, list[MatchedRule]] = {}
    for level in sorted(LEVEL_ORDER, key=LEVEL_ORDER.get):
        level_rules = [rule for rule in rules if rule.level == level]
        if level_rules:
            groups[level] = level_rules
    return groups


def category_for_tags(tags: list[str] | None) -> str | None:
    """Resolve the category folder for a rule from its tags."""
    if not tags:
        return None
    lower_tags = {tag.lower() for tag in tags}
    for category, selectors in CATEGORY_TAGS:
        if any(selector in lower_tags for selector in selectors):
            return category
    return None


def slugify(text: str) -> str:
    """Lower-case, hyphenated, filesystem-safe form of a title."""
    slug = text.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    slug = slug.strip("-")
    return slug[:MAX_FILENAME_LENGTH]


def id_suffix(rule_id: str) -> str:
    return str(rule_id)[-ID_SUFFIX_LENGTH:]


def rule_file_name(rule: MatchedRule) -> str:
    """Human-readable base file name (without extension) for a rule.

    Uses the slug when it is meaningful and already in slug form, otherwise
    the slugified title with the last characters of the id appended.
    """
    if rule.slug and rule.slug != rule.id and slugify(rule.slug) == rule.slug:
        return rule.slug

    name = slugify(rule.title)
    if len(name) < 3:
        name = "rule"
    return f"{name}-{id_suffix(rule.id)}"


class FileNameAllocator:
    """Hands out rule file names that are unique within one package."""

    def __init__(self) -> None:
        self._used: set[str] = set()

    def allocate(self, rule: MatchedRule, directory: str = "") -> str:
        base = rule_file_name(rule)
        candidate = base
        suffix = id_suffix(rule.id)
        if self._key(directory, candidate) in self._used and not base.endswith(f"-{suffix}"):
            candidate = f"{base}-{suffix}"

        counter = 2
        unique = candidate
        while self._key(directory, unique) in self._used:
            unique = f"{candidate}-{counter}"
            counter += 1

        self._used.add(self._key(directory, unique))
        return unique

    @staticmethod
    def _key(directory: str, name: str) -> str:
        return f"{directory}/{name}"


def _fence_info(line: str) -> str | None:
    stripped = line.strip()
    if stripped.startswith(FENCE):
        return stripped[len(FENCE):].strip()
    return None


def extract_bash_commands(content: str) -> list[str]:
    """Extract executable lines from a rule body.

    Lines inside bash/shell/sh fences are taken (minus blanks and comments),
    as are bare package-manager and file commands outside any fence.
    """
    commands: list[str] = []
    in_block = False
    block_type = ""

    for line in content.split("\n"):
        info = _fence_info(line)
        if info is not None:
            if not in_block:
                in_block = True
                block_type = info.lower()
            else:
                in_block = False
                block_type = ""
            continue

        stripped = line.strip()
        if in_block:
            if block_type in SHELL_FENCES and stripped and not stripped.startswith("#"):
                commands.append(stripped)
            continue

        if stripped.startswith(COMMAND_PREFIXES):
            commands.append(stripped)

    return commands


def _is_file_block(info: str) -> bool:
    return "." in info or info in KNOWN_CONFIG_FILES


def _is_safe_path(file_name: str) -> bool:
    path = PurePosixPath(file_name)
    return bool(file_name) and not path.is_absolute() and ".." not in path.parts and "\\" not in file_name


def extract_configuration_files(content: str) -> dict[str, str]:
    """Collect fenced blocks annotated with a file name.

    A fence whose annotation contains a dot or is a known config file name is
    treated as a file; its body becomes that file's content.
    """
    files: dict[str, str] = {}
    in_block = False
    file_name = ""
    body: list[str] = []

    for line in content.split("\n"):
        info = _fence_info(line)
        if info is not None:
            if not in_block:
                in_block = True
                file_name = info if _is_file_block(info) else ""
                body = []
            else:
                if file_name and body:
                    if _is_safe_path(file_name):
                        files[file_name] = "\n".join(body)
                    else:
                        logger.warning(f"Skipping embedded file with unsafe name: {file_name}")
                in_block = False
                file_name = ""
                body = []
            continue

        if in_block and file_name:
            body.append(line)

    return files


def is_json_file(file_name: str) -> bool:
    name = PurePosixPath(file_name).name
    return name.endswith(".json") or name in JSON_CONFIG_FILES


def parse_json_object(text: str, source: str = "") -> dict[str, Any]:
    """Parse a JSON object, returning an empty dict when it is malformed."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"Malformed JSON in {source or 'embedded block'}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Expected a JSON object in {source or 'embedded block'}, got {type(data).__name__}")
        return {}
    return data


def merge_config_objects(existing: dict[str, Any], new: dict[str, Any]) -> dict[str, Any]:
    """Shallow merge: union of top-level keys, new values win."""
    return {**existing, **new}


def merge_configuration_files(existing: str, new: str, file_name: str) -> str:
    """Merge two contributions to the same embedded file."""
    if not is_json_file(file_name):
        return new
    merged = merge_config_objects(
        parse_json_object(existing, file_name),
        parse_json_object(new, file_name),
    )
    return json.dumps(merged, indent=2)


def collect_configuration_files(rules: list[MatchedRule]) -> dict[str, str]:
    """Gather embedded files from all rules, merging same-named files in order."""
    collected: dict[str, str] = {}
    for rule in rules:
        for file_name, content in extract_configuration_files(rule.content).items():
            if file_name in collected:
                collected[file_name] = merge_configuration_files(collected[file_name], content, file_name)
            elif is_json_file(file_name):
                collected[file_name] = json.dumps(parse_json_object(content, file_name), indent=2)
            else:
                collected[file_name] = content
    return collected


# Config bundle key -> (file names, required marker, content mention)
CONFIG_BUNDLE_KINDS: dict[str, tuple[tuple[str, ...], str | None, str]] = {
    "packageJson": (("package.json",), None, "package.json"),
    "tsConfig": (("tsconfig.json",), "compilerOptions", "tsconfig.json"),
    "eslintConfig": ((".eslintrc", ".eslintrc.json"), "rules", ".eslintrc"),
}


def extract_json_config(content: str, kind: str) -> dict[str, Any] | None:
    """Extract one config-bundle fragment from a rule body.

    Returns None when the rule does not mention the config file at all, and
    an empty dict when it does but nothing usable is found.
    """
    file_names, marker, mention = CONFIG_BUNDLE_KINDS[kind]
    if mention not in content:
        return None

    files = extract_configuration_files(content)
    for name, body in files.items():
        if PurePosixPath(name).name in file_names:
            if marker and marker not in body:
                continue
            return parse_json_object(body, name)

    match = JSON_BLOCK_RE.search(content)
    if match and (marker is None or marker in match.group(1)):
        return parse_json_object(match.group(1), mention)
    return {}


def heredoc_delimiter(content: str) -> str:
    """A heredoc terminator that never appears as a line of the content."""
    lines = {line.strip() for line in content.split("\n")}
    while True:
        token = f"RULEHUB_EOF_{secrets.token_hex(4).upper()}"
        if token not in lines:
            return token

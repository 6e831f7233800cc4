"""Bash setup script emitter.

The generated script creates an IDE-specific rules directory tree, writes
each rule file through a quoted heredoc, and replays shell commands found in
the rule bodies.
"""

import json
import shlex
from dataclasses import dataclass
from typing import Any

from rulehub.generation.emitters.base import (
    RULE_VERSION,
    PackageEmitter,
    register_emitter,
    render_template,
    utc_timestamp,
)
from rulehub.generation.extraction import (
    RULE_CATEGORIES,
    FileNameAllocator,
    category_for_tags,
    extract_bash_commands,
    group_rules_by_level,
    heredoc_delimiter,
)
from rulehub.generation.models import MatchedRule, OutputFormat, WizardConfiguration


@dataclass(frozen=True)
class IdeLayout:
    """Where and how rule files are written for an IDE."""

    label: str
    rules_dir: str
    comment: str
    extension: str
    template: str


CURSOR_LAYOUT = IdeLayout("Cursor", ".ai/rules", "Create Cursor-specific directories", ".mdc", "cursor_rule.mdc.j2")
VSCODE_LAYOUT = IdeLayout("VS Code", ".vscode/ai-rules", "Create VS Code-specific directories", ".md", "vscode_rule.md.j2")
JETBRAINS_LAYOUT = IdeLayout("JetBrains", ".idea/ai-rules", "Create JetBrains IDE-specific directories", ".md", "markdown_rule.md.j2")
GENERAL_LAYOUT = IdeLayout("general", "docs/coding-rules", "Create general coding rules directory", ".md", "markdown_rule.md.j2")

IDE_LAYOUTS: dict[str, IdeLayout] = {
    "cursor": CURSOR_LAYOUT,
    "vscode": VSCODE_LAYOUT,
    "webstorm": JETBRAINS_LAYOUT,
    "intellij": JETBRAINS_LAYOUT,
}


def layout_for_ide(target_ide: str) -> IdeLayout:
    return IDE_LAYOUTS.get(target_ide.lower(), GENERAL_LAYOUT)


def _single_line(text: str) -> str:
    return " ".join(text.split())


def render_rule_for_ide(rule: MatchedRule, layout: IdeLayout) -> str:
    """Render a rule file in the format the target IDE expects."""
    compatibility = rule.rule.compatibility or {}
    context: dict[str, Any] = {
        "title": rule.title,
        "description": rule.title,
        "content": rule.content,
        "tags": rule.tags,
        "globs": rule.rule.compatibility_list("globs"),
        "frameworks": rule.rule.compatibility_list("frameworks"),
        "compatibility": compatibility,
        "always_apply": rule.always_apply,
        "version": RULE_VERSION,
        "last_updated": utc_timestamp(),
    }
    return render_template(layout.template, **context).rstrip("\n")


class BashScriptEmitter(PackageEmitter):
    """Emits a self-contained bash setup script."""

    output_format = OutputFormat.BASH.value
    content_type = "text/x-shellscript; charset=utf-8"
    file_extension = "sh"

    def emit(self, rules: list[MatchedRule], config: WizardConfiguration) -> bytes:
        return self.render(rules, config).encode("utf-8")

    def render(self, rules: list[MatchedRule], config: WizardConfiguration) -> str:
        target_ide = _single_line(config.target_ide)
        layout = layout_for_ide(target_ide)
        allocator = FileNameAllocator()

        groups = []
        for level, level_rules in group_rules_by_level(rules).items():
            entries = [self._entry(rule, layout, allocator) for rule in level_rules]
            groups.append({"level": level.value, "entries": entries})

        configuration_lines = f"Configuration: {json.dumps(config.stack_choices, indent=2)}".split("\n")

        return render_template(
            "setup_script.sh.j2",
            target_ide=target_ide,
            configuration_lines=configuration_lines,
            generated_at=utc_timestamp(),
            layout=layout,
            category_braces="{" + ",".join(RULE_CATEGORIES) + "}",
            groups=groups,
            rule_count=len(rules),
        )

    def _entry(self, rule: MatchedRule, layout: IdeLayout, allocator: FileNameAllocator) -> dict[str, Any]:
        category = category_for_tags(rule.tags)
        file_name = f"{allocator.allocate(rule, category or '')}{layout.extension}"
        relative_path = f"{category}/{file_name}" if category else file_name
        body = render_rule_for_ide(rule, layout)

        return {
            "title": rule.title,
            "comment_title": _single_line(rule.title),
            "file_name": file_name,
            "file_path": f'"$RULES_DIR"/{shlex.quote(relative_path)}',
            "body": body,
            "delimiter": heredoc_delimiter(body),
            "commands": extract_bash_commands(rule.content),
        }


register_emitter(BashScriptEmitter())

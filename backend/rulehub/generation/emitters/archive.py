"""ZIP archive emitter."""

import io
import json
import zipfile

from rulehub.generation.emitters.base import (
    PackageEmitter,
    register_emitter,
    render_template,
    utc_timestamp,
)
from rulehub.generation.extraction import (
    RULE_CATEGORIES,
    FileNameAllocator,
    category_for_tags,
    collect_configuration_files,
)
from rulehub.generation.models import MatchedRule, OutputFormat, WizardConfiguration

RULES_ROOT = ".ai/rules"
MANIFEST_NAME = "rulehub-config.json"
SETUP_NAME = "SETUP.md"


class ZipArchiveEmitter(PackageEmitter):
    """Emits an in-memory ZIP with rules laid out by category."""

    output_format = OutputFormat.ZIP.value
    content_type = "application/zip"
    file_extension = "zip"

    def emit(self, rules: list[MatchedRule], config: WizardConfiguration) -> bytes:
        buffer = io.BytesIO()
        setup = render_template("setup.md.j2", rule_count=len(rules)).strip()

        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr(f"{RULES_ROOT}/", "")
            for category in RULE_CATEGORIES:
                archive.writestr(f"{RULES_ROOT}/{category}/", "")

            manifest = {
                "configuration": config.to_dict(),
                "generatedAt": utc_timestamp(),
                "rulesIncluded": [rule.id for rule in rules],
                "instructions": setup,
            }
            archive.writestr(MANIFEST_NAME, json.dumps(manifest, indent=2))
            archive.writestr(SETUP_NAME, setup)

            allocator = FileNameAllocator()
            for rule in rules:
                category = category_for_tags(rule.tags)
                folder = f"{RULES_ROOT}/{category}" if category else RULES_ROOT
                file_name = f"{allocator.allocate(rule, folder)}.mdc"
                archive.writestr(f"{folder}/{file_name}", self.render_rule(rule, category))

            reserved = {MANIFEST_NAME, SETUP_NAME}
            for file_name, content in collect_configuration_files(rules).items():
                if file_name in reserved:
                    continue
                archive.writestr(file_name, content)

        return buffer.getvalue()

    @staticmethod
    def render_rule(rule: MatchedRule, category: str | None) -> str:
        return render_template(
            "archive_rule.mdc.j2",
            title=rule.title,
            content=rule.content,
            category=category,
            tags=rule.tags,
            always_apply=rule.always_apply,
            match_score=rule.match_score,
        )


register_emitter(ZipArchiveEmitter())

"""JSON configuration bundle emitter."""

import json
from typing import Any

from rulehub.generation.emitters.base import PackageEmitter, register_emitter, utc_timestamp
from rulehub.generation.extraction import CONFIG_BUNDLE_KINDS, extract_json_config, merge_config_objects
from rulehub.generation.models import MatchedRule, OutputFormat, WizardConfiguration


def collect_config_fragments(rules: list[MatchedRule]) -> dict[str, dict[str, Any]]:
    """Extract package.json, tsconfig and ESLint fragments, merging across rules."""
    config_files: dict[str, dict[str, Any]] = {}
    for rule in rules:
        for kind in CONFIG_BUNDLE_KINDS:
            fragment = extract_json_config(rule.content, kind)
            if fragment is None:
                continue
            config_files[kind] = merge_config_objects(config_files.get(kind, {}), fragment)
    return config_files


class ConfigBundleEmitter(PackageEmitter):
    """Emits a single JSON document describing the configuration and applied rules."""

    output_format = OutputFormat.CONFIG.value
    content_type = "application/json"
    file_extension = "json"

    def emit(self, rules: list[MatchedRule], config: WizardConfiguration) -> bytes:
        return json.dumps(self.build(rules, config), indent=2, ensure_ascii=False).encode("utf-8")

    def build(self, rules: list[MatchedRule], config: WizardConfiguration) -> dict[str, Any]:
        return {
            "configuration": config.to_dict(),
            "configFiles": collect_config_fragments(rules),
            "generatedAt": utc_timestamp(),
            "appliedRules": [
                {
                    "id": rule.id,
                    "title": rule.title,
                    "level": rule.level.value,
                    "alwaysApply": rule.always_apply,
                }
                for rule in rules
            ],
            "targetIde": config.target_ide,
        }


register_emitter(ConfigBundleEmitter())

"""Tests for rule content extraction helpers."""

import json

from rulehub.generation.extraction import (
    FileNameAllocator,
    category_for_tags,
    collect_configuration_files,
    extract_bash_commands,
    extract_configuration_files,
    extract_json_config,
    group_rules_by_level,
    heredoc_delimiter,
    merge_configuration_files,
    parse_json_object,
    rule_file_name,
    slugify,
)
from rulehub.generation.models import MatchedRule, Rule, RuleLevel


def make_matched(rule_id="abcdef123456", title="Rule", slug=None, content="", tags=None,
                 level=RuleLevel.GENERAL, score=1.0) -> MatchedRule:
    rule = Rule(id=rule_id, title=title, slug=slug if slug is not None else rule_id, content=content, tags=tags)
    return MatchedRule(rule=rule, level=level, match_score=score)


class TestGroupRulesByLevel:
    """Tests for level grouping."""

    def test_groups_in_level_order_skipping_empty(self):
        """Test groups come out general-to-specific and empty levels are absent."""
        rules = [
            make_matched("e", level=RuleLevel.ENVIRONMENT),
            make_matched("g1", level=RuleLevel.GENERAL),
            make_matched("g2", level=RuleLevel.GENERAL),
        ]

        groups = group_rules_by_level(rules)

        assert list(groups) == [RuleLevel.GENERAL, RuleLevel.ENVIRONMENT]
        assert [r.id for r in groups[RuleLevel.GENERAL]] == ["g1", "g2"]


class TestCategoryForTags:
    """Tests for category folder selection."""

    def test_first_matching_category_wins(self):
        """Test categories are checked in a fixed order."""
        assert category_for_tags(["tool", "language"]) == "languages"
        assert category_for_tags(["AI Assistant"]) == "assistants"
        assert category_for_tags(["technologies"]) == "technologies"

    def test_no_category(self):
        """Test tags without a category selector."""
        assert category_for_tags(["react"]) is None
        assert category_for_tags([]) is None
        assert category_for_tags(None) is None


class TestFileNames:
    """Tests for rule file naming."""

    def test_slugify(self):
        """Test titles become hyphenated, lower-case slugs."""
        assert slugify("  React: Hooks & Effects!  ") == "react-hooks-effects"
        assert len(slugify("x" * 80)) == 50

    def test_meaningful_slug_used(self):
        """Test a slug different from the id is used as-is."""
        rule = make_matched("id-1", title="Anything", slug="react-hooks")
        assert rule_file_name(rule) == "react-hooks"

    def test_title_fallback_with_id_suffix(self):
        """Test slug equal to id falls back to the title plus id suffix."""
        rule = make_matched("abcdef123456", title="React Hooks")
        assert rule_file_name(rule) == "react-hooks-123456"

    def test_malformed_slug_falls_back_to_title(self):
        """Test slugs that are not already in slug form are ignored."""
        for slug in ("../../evil", "ok\nrm -rf x", "Mixed Case"):
            rule = make_matched("abcdef123456", title="React Hooks", slug=slug)
            assert rule_file_name(rule) == "react-hooks-123456"

    def test_short_title_fallback(self):
        """Test very short titles use a generic name."""
        rule = make_matched("abcdef123456", title="!!", slug="")
        assert rule_file_name(rule) == "rule-123456"

    def test_allocator_disambiguates_identical_slugs(self):
        """Test two rules with the same slug get distinct file names."""
        allocator = FileNameAllocator()
        first = make_matched("id-aaaaaa", slug="testing")
        second = make_matched("id-bbbbbb", slug="testing")

        assert allocator.allocate(first, "tools") == "testing"
        assert allocator.allocate(second, "tools") == "testing-bbbbbb"

    def test_allocator_scoped_by_directory(self):
        """Test the same name is allowed in different folders."""
        allocator = FileNameAllocator()
        rule = make_matched("id-aaaaaa", slug="testing")

        assert allocator.allocate(rule, "tools") == "testing"
        assert allocator.allocate(rule, "tasks") == "testing"

    def test_allocator_counter_for_repeats(self):
        """Test a counter is appended when the suffixed name is also taken."""
        allocator = FileNameAllocator()
        rule = make_matched("abcdef123456", title="React Hooks")

        names = [allocator.allocate(rule) for _ in range(3)]

        assert names == ["react-hooks-123456", "react-hooks-123456-2", "react-hooks-123456-3"]


class TestExtractBashCommands:
    """Tests for shell command extraction."""

    def test_commands_from_shell_fences(self):
        """Test lines inside bash, sh, and shell fences are taken."""
        content = "\n".join([
            "Install:",
            "```bash",
            "# comment",
            "npm install react",
            "",
            "npx tsc --init",
            "```",
            "```sh",
            "git init",
            "```",
        ])

        assert extract_bash_commands(content) == ["npm install react", "npx tsc --init", "git init"]

    def test_other_fences_ignored(self):
        """Test non-shell fences contribute nothing, even package commands."""
        content = "```json\nnpm install nothing\n```"
        assert extract_bash_commands(content) == []

    def test_bare_commands_outside_fences(self):
        """Test recognised command prefixes outside fences are taken."""
        content = "Run this:\n  yarn add lodash\nmkdir src\nnpmx not a command\n"
        assert extract_bash_commands(content) == ["yarn add lodash", "mkdir src"]


class TestExtractConfigurationFiles:
    """Tests for embedded file extraction."""

    def test_file_named_fences(self):
        """Test fences annotated with a file name become files."""
        content = "\n".join([
            "```tsconfig.json",
            '{"compilerOptions": {"strict": true}}',
            "```",
            "```Dockerfile",
            "FROM node:20",
            "```",
            "```json",
            "{}",
            "```",
        ])

        files = extract_configuration_files(content)

        assert files == {
            "tsconfig.json": '{"compilerOptions": {"strict": true}}',
            "Dockerfile": "FROM node:20",
        }

    def test_empty_block_skipped(self):
        """Test a file fence with no body is ignored."""
        assert extract_configuration_files("```a.txt\n```") == {}

    def test_unsafe_names_skipped(self):
        """Test absolute and parent-relative names are rejected."""
        content = "```../evil.sh\nrm -rf /\n```\n```/etc/passwd.txt\nroot\n```\n```config/app.yml\nok: 1\n```"

        assert extract_configuration_files(content) == {"config/app.yml": "ok: 1"}


class TestJsonMerging:
    """Tests for JSON configuration merging."""

    def test_parse_malformed_returns_empty(self):
        """Test malformed JSON degrades to an empty object."""
        assert parse_json_object("{not json") == {}
        assert parse_json_object("[1, 2]") == {}

    def test_new_values_win(self):
        """Test same-named JSON files merge shallowly with the newer value winning."""
        merged = merge_configuration_files('{"a": 1, "b": 1}', '{"b": 2, "c": 3}', "package.json")
        assert json.loads(merged) == {"a": 1, "b": 2, "c": 3}

    def test_non_json_replaced(self):
        """Test non-JSON files are replaced by the newer contribution."""
        assert merge_configuration_files("old", "new", "Dockerfile") == "new"

    def test_collect_across_rules(self):
        """Test files from several rules are merged in order."""
        rules = [
            make_matched("r1", content='```package.json\n{"name": "app", "private": true}\n```'),
            make_matched("r2", content='```package.json\n{"private": false}\n```'),
            make_matched("r3", content="```.prettierrc\n{broken\n```"),
        ]

        files = collect_configuration_files(rules)

        assert json.loads(files["package.json"]) == {"name": "app", "private": False}
        assert json.loads(files[".prettierrc"]) == {}


class TestExtractJsonConfig:
    """Tests for config bundle fragment extraction."""

    def test_not_mentioned_returns_none(self):
        """Test rules not mentioning the file contribute nothing."""
        assert extract_json_config("No configuration here", "tsConfig") is None

    def test_named_tsconfig_block(self):
        """Test a block annotated tsconfig.json is used."""
        content = 'Edit tsconfig.json:\n```tsconfig.json\n{"compilerOptions": {"strict": true}}\n```'
        assert extract_json_config(content, "tsConfig") == {"compilerOptions": {"strict": True}}

    def test_plain_json_block_requires_marker(self):
        """Test a plain json block is used only when it has the marker."""
        with_marker = 'tsconfig.json\n```json\n{"compilerOptions": {}}\n```'
        without_marker = 'tsconfig.json\n```json\n{"include": ["src"]}\n```'

        assert extract_json_config(with_marker, "tsConfig") == {"compilerOptions": {}}
        assert extract_json_config(without_marker, "tsConfig") == {}

    def test_package_json_first_json_block(self):
        """Test package.json takes the first json block."""
        content = 'Update package.json:\n```json\n{"scripts": {"lint": "eslint ."}}\n```'
        assert extract_json_config(content, "packageJson") == {"scripts": {"lint": "eslint ."}}

    def test_malformed_block_is_empty(self):
        """Test malformed JSON yields an empty fragment."""
        content = "package.json\n```json\n{oops}\n```"
        assert extract_json_config(content, "packageJson") == {}


class TestHeredocDelimiter:
    """Tests for heredoc delimiter selection."""

    def test_not_in_content(self):
        """Test the delimiter never equals a line of the content."""
        content = "EOF\nsome text\n"
        delimiter = heredoc_delimiter(content)

        assert delimiter.startswith("RULEHUB_EOF_")
        assert delimiter not in content.split("\n")

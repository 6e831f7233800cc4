"""Tests for rule relevance scoring."""

import pytest

from rulehub.generation.models import Rule, WizardConfiguration
from rulehub.generation.scorer import UserChoices, score_rule


def make_rule(**kwargs) -> Rule:
    data = {"id": "rule-1", "title": "Rule", "slug": "rule", "content": "Body"}
    data.update(kwargs)
    return Rule(**data)


class TestUserChoices:
    """Tests for decomposing a wizard configuration."""

    def test_only_truthy_choices_selected(self):
        """Test choices with falsy values are ignored."""
        config = WizardConfiguration(
            stack_choices={"react": True, "vue": False},
            language_choices={"typescript": True, "javascript": False},
            tool_preferences={"eslint": True, "husky": None},
            environment_details={"targetIde": "cursor"},
        )

        choices = UserChoices.from_configuration(config)

        assert choices.stacks == ["react"]
        assert choices.languages == ["typescript"]
        assert choices.tools == ["eslint"]
        assert choices.environment == {"targetIde": "cursor"}


class TestScoreRule:
    """Tests for additive scoring."""

    def test_stack_and_language_tags(self):
        """Test one stack and one language match score 2.0."""
        rule = make_rule(tags=["react", "typescript"], always_apply=False)
        choices = UserChoices(stacks=["react"], languages=["typescript"])

        result = score_rule(rule, choices)

        assert result.score == pytest.approx(2.0)
        assert result.reasons == ["Matches stack: react", "Matches language: typescript"]

    def test_always_apply_only(self):
        """Test always-apply rules score 0.5 with no other matches."""
        rule = make_rule(tags=[], always_apply=True)

        result = score_rule(rule, UserChoices())

        assert result.score == pytest.approx(0.5)
        assert result.reasons == ["Always applicable rule"]

    def test_no_match_scores_zero(self):
        """Test an unrelated rule scores zero."""
        rule = make_rule(tags=["python"], compatibility={"frameworks": ["django"]})
        choices = UserChoices(stacks=["react"], languages=["typescript"], tools=["eslint"])

        result = score_rule(rule, choices)

        assert result.score == 0
        assert result.reasons == []

    def test_tool_match_weight(self):
        """Test tool matches add 0.8."""
        rule = make_rule(tags=["eslint"])

        result = score_rule(rule, UserChoices(tools=["eslint"]))

        assert result.score == pytest.approx(0.8)
        assert result.reasons == ["Matches tool: eslint"]

    def test_substring_match_either_direction(self):
        """Test tag and choice match when either contains the other."""
        rule = make_rule(tags=["React-Hooks"])
        assert score_rule(rule, UserChoices(stacks=["react"])).score == pytest.approx(1.0)

        rule = make_rule(tags=["next"])
        assert score_rule(rule, UserChoices(stacks=["nextjs"])).score == pytest.approx(1.0)

    def test_case_insensitive(self):
        """Test matching ignores case on both sides."""
        rule = make_rule(tags=["TypeScript"])

        result = score_rule(rule, UserChoices(languages=["TYPESCRIPT"]))

        assert result.score == pytest.approx(1.0)
        assert result.reasons == ["Matches language: TypeScript"]

    def test_empty_strings_never_match(self):
        """Test empty tags and empty choices never count as a match."""
        rule = make_rule(tags=[""], compatibility={"frameworks": [""]})

        result = score_rule(rule, UserChoices(stacks=["react", ""], languages=[""]))

        assert result.score == 0

    def test_non_string_tags_ignored(self):
        """Test non-string tag entries are skipped."""
        rule = make_rule(tags=[None, 42, "react"])

        result = score_rule(rule, UserChoices(stacks=["react"]))

        assert result.score == pytest.approx(1.0)

    def test_multiple_matches_accumulate(self):
        """Test one tag can match several selections."""
        rule = make_rule(tags=["react"])

        result = score_rule(rule, UserChoices(stacks=["react", "react-native"]))

        assert result.score == pytest.approx(2.0)
        assert len(result.reasons) == 2

    def test_framework_compatibility(self):
        """Test framework compatibility adds 1.2 per matching stack."""
        rule = make_rule(tags=[], compatibility={"frameworks": ["nextjs"]})

        result = score_rule(rule, UserChoices(stacks=["next"]))

        assert result.score == pytest.approx(1.2)
        assert result.reasons == ["Compatible framework: nextjs"]

    def test_ai_assistant_bonus_applied_once(self):
        """Test supported assistants add 0.3 once regardless of selections."""
        rule = make_rule(compatibility={"aiAssistants": ["vibecoding", "cascade"]})

        result = score_rule(rule, UserChoices())

        assert result.score == pytest.approx(0.3)
        assert result.reasons == ["Compatible with AI assistant"]

    def test_unsupported_ai_assistant_ignored(self):
        """Test other assistants do not add the bonus."""
        rule = make_rule(compatibility={"aiAssistants": ["copilot"]})

        assert score_rule(rule, UserChoices()).score == 0

    def test_missing_fields_treated_as_empty(self):
        """Test absent tags and compatibility contribute nothing."""
        rule = make_rule(tags=None, compatibility=None, always_apply=None)

        assert score_rule(rule, UserChoices(stacks=["react"])).score == 0

    def test_full_combination(self):
        """Test every signal adds up."""
        rule = make_rule(
            tags=["react", "typescript", "eslint"],
            compatibility={"frameworks": ["react"], "aiAssistants": ["cascade"]},
            always_apply=True,
        )
        choices = UserChoices(stacks=["react"], languages=["typescript"], tools=["eslint"])

        result = score_rule(rule, choices)

        assert result.score == pytest.approx(0.5 + 1.0 + 1.0 + 0.8 + 1.2 + 0.3)
        assert len(result.reasons) == 6

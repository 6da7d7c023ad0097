"""Unit tests for inherited metadata key matching."""

import pytest
from pgcluster.types.settings import Settings
from pgcluster.utils.patterns import (
    InvalidPatternError,
    compile_pattern,
    is_inherited,
    matches,
)


class TestMatches:
    """Glob semantics of a single pattern."""

    def test_exact_key(self):
        assert matches("one", "one")
        assert not matches("one", "ones")

    def test_star_spans_slashes(self):
        assert matches("qa.test.com/*", "qa.test.com/team")
        assert matches("*", "example.com/a/b")
        assert not matches("qa.test.com/*", "prod.test.com/team")

    def test_question_mark_is_single_character(self):
        assert matches("env?", "env1")
        assert not matches("env?", "env")
        assert not matches("env?", "env12")

    def test_character_class_and_range(self):
        assert matches("tier-[abc]", "tier-b")
        assert matches("tier-[a-c]", "tier-c")
        assert not matches("tier-[a-c]", "tier-d")

    def test_negated_class(self):
        assert matches("tier-[!a]", "tier-b")
        assert matches("tier-[^a]", "tier-b")
        assert not matches("tier-[!a]", "tier-a")

    def test_escape_makes_metacharacter_literal(self):
        assert matches(r"a\*", "a*")
        assert not matches(r"a\*", "ab")

    def test_regex_characters_are_literal(self):
        assert matches("app.kubernetes.io/name", "app.kubernetes.io/name")
        assert not matches("app.kubernetes.io/name", "appXkubernetes.io/name")

    def test_match_is_anchored(self):
        assert not matches("team", "my-team")
        assert not matches("team", "team-a")

    @pytest.mark.parametrize("pattern", ["[abc", "[]", "[z-a]", "trailing\\", "[a\\"])
    def test_malformed_pattern_raises(self, pattern):
        with pytest.raises(InvalidPatternError):
            compile_pattern(pattern)


class TestIsInherited:
    """A key is inherited when any pattern of the list matches it."""

    def test_any_pattern_matches(self):
        assert is_inherited(["one", "two"], "one")
        assert is_inherited(["one", "two"], "two")
        assert not is_inherited(["one", "two"], "three")

    def test_glob_pattern_in_list(self):
        patterns = ["qa.test.com/*", "prod.test.com/*"]
        assert is_inherited(patterns, "qa.test.com/one")
        assert is_inherited(patterns, "prod.test.com/two")
        assert not is_inherited(patterns, "dev.test.com/three")

    def test_malformed_pattern_is_skipped(self):
        patterns = ["[abc", "qa.test.com/*"]
        assert is_inherited(patterns, "qa.test.com/one")
        assert not is_inherited(patterns, "[abc")
        assert not is_inherited(patterns, "a")

    def test_no_patterns(self):
        assert not is_inherited([], "anything")
        assert not is_inherited(None, "anything")


class TestSettings:
    def test_labels_and_annotations_use_their_own_patterns(self):
        conf = Settings(
            inherited_labels=["team"],
            inherited_annotations=["example.com/*"],
        )
        assert conf.is_label_inherited("team")
        assert not conf.is_label_inherited("example.com/owner")
        assert conf.is_annotation_inherited("example.com/owner")
        assert not conf.is_annotation_inherited("team")

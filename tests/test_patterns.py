"""Tests for value pattern matching."""

import re

import pytest

from fieldvals.patterns import is_matched, search, to_number


class TestToNumber:
    """Tests for leading-number conversion."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("42", 42.0),
            ("  -3.5kg", -3.5),
            ("1e3", 1000.0),
            (".5", 0.5),
            ("abc", 0.0),
            ("", 0.0),
            (None, 0.0),
        ],
    )
    def test_to_number(self, value, expected):
        """Test conversion of the leading numeric prefix."""
        assert to_number(value) == expected


class TestIsMatched:
    """Tests for is_matched."""

    def test_regex_string(self):
        """Test that a plain string is a regex search."""
        assert is_matched("science fiction", "fic")
        assert is_matched("science fiction", "^sci")
        assert not is_matched("science fiction", "^fic")

    def test_compiled_regex(self):
        """Test that a compiled pattern is searched."""
        assert is_matched("Fandom", re.compile("fandom", re.IGNORECASE))
        assert not is_matched("Fandom", re.compile("^x"))

    def test_negation(self):
        """Test that a leading ! negates the pattern."""
        assert is_matched("apple", "!pear")
        assert not is_matched("apple", "!app")

    def test_lone_bang_is_literal(self):
        """Test that a single ! is searched for literally."""
        assert is_matched("hey!", "!")
        assert not is_matched("hey", "!")

    def test_empty_pattern(self):
        """Test that the empty pattern matches only the empty value."""
        assert is_matched("", "")
        assert not is_matched("x", "")

    def test_negated_empty_pattern(self):
        """Test that a bare ! does not negate the empty pattern."""
        assert not is_matched("", "!")

    @pytest.mark.parametrize(
        "value,pattern,expected",
        [
            ("2003", "> 2001", True),
            ("1999", "> 2001", False),
            ("2001", ">= 2001", True),
            ("2001", "<= 2000", False),
            ("10", "< 9", False),
            ("5.0", "== 5", True),
            ("5", "!= 5", False),
            ("6", "!= 5", True),
        ],
    )
    def test_numeric_operators(self, value, pattern, expected):
        """Test numeric comparisons."""
        assert is_matched(value, pattern) is expected

    @pytest.mark.parametrize(
        "value,pattern,expected",
        [
            ("10", "lt 9", True),
            ("apple", "lt banana", True),
            ("cherry", "gt banana", True),
            ("kiwi", "eq kiwi", True),
            ("kiwi", "ne kiwi", False),
            ("b", "le b", True),
            ("a", "ge b", False),
        ],
    )
    def test_lexical_operators(self, value, pattern, expected):
        """Test string comparisons."""
        assert is_matched(value, pattern) is expected

    def test_negated_operator(self):
        """Test that a negation applies to an operator comparison."""
        assert is_matched("1999", "!> 2001")
        assert not is_matched("2003", "!> 2001")

    def test_operand_may_contain_spaces(self):
        """Test that everything after the operator is the operand."""
        assert is_matched("the end", "eq the end")

    def test_unknown_operator_is_regex(self):
        """Test that a first word that is not an operator is part of a regex."""
        assert is_matched("foo bar", "foo bar")
        assert not is_matched("foo baz", "foo bar")

    def test_invalid_regex_falls_back_to_substring(self):
        """Test that an uncompilable pattern is a literal substring test."""
        assert is_matched("a(b", "a(b")
        assert not is_matched("ab", "a(b")


class TestSearch:
    """Tests for the search helper."""

    def test_search(self):
        """Test regex and literal fallback."""
        assert search("b+", "abbbc")
        assert search("[", "a[b")
        assert not search("[", "ab")

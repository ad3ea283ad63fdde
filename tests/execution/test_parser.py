"""Tests for path expression parser (string → StepReference / segments)"""

import pytest

from chainprobe.core.exceptions import PathSyntaxError, ResolutionError
from chainprobe.execution.parser import (
    Lexer,
    TokenType,
    is_step_reference,
    parse_relative_path,
    parse_step_reference,
)
from chainprobe.execution.types import PathRoot, Segment


class TestLexer:
    """Test tokenization of path expressions"""

    def test_tokenizes_reference(self):
        tokens = Lexer("$steps[0].result").tokenize()
        assert [t.type for t in tokens] == [
            TokenType.WORD,
            TokenType.LBRACKET,
            TokenType.NUMBER,
            TokenType.RBRACKET,
            TokenType.DOT,
            TokenType.WORD,
            TokenType.EOF,
        ]
        assert tokens[0].value == "$steps"
        assert tokens[2].value == 0

    def test_digit_words_become_numbers(self):
        tokens = Lexer("12").tokenize()
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].value == 12

    def test_words_may_contain_dashes_and_underscores(self):
        tokens = Lexer("item-id_2").tokenize()
        assert tokens[0].type == TokenType.WORD
        assert tokens[0].value == "item-id_2"


class TestStepReferenceParser:
    """Test parsing of argument-mapping expressions"""

    def test_result_root_without_path(self):
        """Test: $steps[1].result"""
        ref = parse_step_reference("$steps[1].result")
        assert ref.step_index == 1
        assert ref.root == PathRoot.RESULT
        assert ref.segments == ()
        assert ref.source_path == "result"

    def test_nested_path_with_index(self):
        """Test: $steps[0].result.items[0].id"""
        ref = parse_step_reference("$steps[0].result.items[0].id")
        assert ref.step_index == 0
        assert ref.segments == (Segment("items", 0), Segment("id"))
        assert ref.source_path == "result.items[0].id"
        assert str(ref) == "$steps[0].result.items[0].id"

    def test_response_root(self):
        """Test: $steps[2].response.content[0].text"""
        ref = parse_step_reference("$steps[2].response.content[0].text")
        assert ref.root == PathRoot.RESPONSE
        assert ref.segments == (Segment("content", 0), Segment("text"))

    def test_multi_digit_step_index(self):
        ref = parse_step_reference("$steps[12].result.value")
        assert ref.step_index == 12

    @pytest.mark.parametrize("expression", [
        "$steps[0]",
        "$steps[0].",
        "$steps[x].result",
        "$steps[0].output.id",
        "$steps.result",
        "steps[0].result",
        "$steps[0].result..id",
        "$steps[0].result.items[",
        "$steps[0].result.items[a]",
        "$steps[0].result.id extra",
        "",
    ])
    def test_invalid_expressions(self, expression):
        with pytest.raises(PathSyntaxError) as exc_info:
            parse_step_reference(expression)
        assert exc_info.value.message.startswith("Invalid path expression:")
        assert "$steps[N].result.path.to.value" in exc_info.value.message

    def test_syntax_error_is_a_resolution_error(self):
        with pytest.raises(ResolutionError):
            parse_step_reference("$steps[0].bogus")

    def test_is_step_reference(self):
        assert is_step_reference("$steps[0].result.id")
        assert not is_step_reference("$steps[0]")


class TestRelativePathParser:
    """Test parsing of assertion paths"""

    def test_single_field(self):
        assert parse_relative_path("status") == [Segment("status")]

    def test_nested_with_index(self):
        assert parse_relative_path("items[0].name") == [Segment("items", 0), Segment("name")]

    def test_numeric_segment(self):
        assert parse_relative_path("rows.0") == [Segment("rows"), Segment("0")]

    @pytest.mark.parametrize("path", ["", "   ", "items.", ".items", "items[0", "a b"])
    def test_invalid_paths(self, path):
        with pytest.raises(PathSyntaxError) as exc_info:
            parse_relative_path(path)
        assert exc_info.value.message.startswith("Invalid path:")


class TestNonAsciiDigits:
    """Unicode digits such as superscripts are not step indexes"""

    def test_superscript_is_a_word(self):
        tokens = Lexer("²").tokenize()
        assert tokens[0].type == TokenType.WORD

    def test_superscript_step_index_is_syntax_error(self):
        with pytest.raises(PathSyntaxError) as exc_info:
            parse_step_reference("$steps[²].result.x")
        assert "expected NUMBER" in exc_info.value.message

    def test_superscript_index_in_relative_path(self):
        with pytest.raises(PathSyntaxError):
            parse_relative_path("items[²]")

    def test_superscript_field_in_relative_path(self):
        assert parse_relative_path("rows.²") == [Segment("rows"), Segment("²")]

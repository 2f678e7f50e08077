"""Tests for context extraction."""

from unittest.mock import MagicMock

import pytest

from utils.errors import ModelClientError
from utils.todo import TodoMatch, extract_context, split_numbered_context
from utils.todo.context import format_numbered_line


@pytest.fixture
def twenty_line_file(write_source):
    lines = [f"line {i}" for i in range(1, 21)]
    lines[9] = "    compute()  # TODO: handle overflow"
    return write_source("module.py", lines)


@pytest.mark.unit
class TestFixedWindow:
    def test_window_around_middle_line(self, twenty_line_file, make_match):
        todo = make_match(twenty_line_file, 10)
        context = extract_context(todo, lines_above=2, lines_below=3)

        assert context.context_above == ["line 8", "line 9"]
        assert context.context_below == ["line 11", "line 12", "line 13"]
        assert context.full_context.split("\n") == [
            "   8 | line 8",
            "   9 | line 9",
            "  10 |     compute()  # TODO: handle overflow",
            "  11 | line 11",
            "  12 | line 12",
            "  13 | line 13",
        ]

    def test_match_on_first_line_has_no_context_above(self, write_source, make_match):
        path = write_source("first.py", ["# TODO: add header", "x = 1", "y = 2"])
        context = extract_context(make_match(path, 1), lines_above=5, lines_below=1)

        assert context.context_above == []
        assert context.context_below == ["x = 1"]
        assert context.full_context.startswith("   1 | # TODO: add header")

    def test_match_on_last_line_has_no_context_below(self, write_source, make_match):
        path = write_source("last.js", ["const a = 1;", "const b = 2;", "// TODO: export these"])
        context = extract_context(make_match(path, 3), lines_above=1, lines_below=10)

        assert context.context_below == []
        assert context.context_above == ["const b = 2;"]

    def test_zero_window_renders_only_the_match(self, twenty_line_file, make_match):
        context = extract_context(make_match(twenty_line_file, 10), 0, 0)

        assert context.full_context == "  10 |     compute()  # TODO: handle overflow"
        assert context.full_context.count("TODO") == 1

    def test_line_number_formatting(self):
        assert format_numbered_line(7, "foo") == "   7 | foo"
        assert format_numbered_line(1234, "bar") == "1234 | bar"
        assert format_numbered_line(12345, "baz") == "12345 | baz"

    def test_rendering_is_repeatable(self, twenty_line_file, make_match):
        todo = make_match(twenty_line_file, 10)
        first = extract_context(todo, 5, 10)
        second = extract_context(todo, 5, 10)

        assert first.full_context == second.full_context
        assert first == second

    def test_full_file_text_is_kept(self, twenty_line_file, make_match):
        context = extract_context(make_match(twenty_line_file, 10), 1, 1)
        assert context.file_content == twenty_line_file.read_text(encoding="utf-8")

    def test_negative_window_rejected(self, twenty_line_file, make_match):
        with pytest.raises(ValueError):
            extract_context(make_match(twenty_line_file, 10), -1, 2)

    def test_missing_file_raises(self, tmp_path):
        todo = TodoMatch(
            file_path=str(tmp_path / "gone.py"),
            line_number=1,
            line="# TODO: x",
            match="# TODO: x",
            description="x",
        )
        with pytest.raises(OSError):
            extract_context(todo, 1, 1)


@pytest.mark.unit
class TestModelWindow:
    def test_model_selected_context_is_split_around_todo(self, twenty_line_file, make_match):
        todo = make_match(twenty_line_file, 10)
        client = MagicMock()
        client.generate_context.return_value = "\n".join(
            [
                "   4 | line 4",
                "   5 | line 5",
                "  10 |     compute()  # TODO: handle overflow",
                "  11 | line 11",
            ]
        )

        context = extract_context(todo, 2, 2, use_ai=True, model_client=client)

        client.generate_context.assert_called_once_with(
            "handle overflow", todo.file_path, 10, context.file_content
        )
        assert context.context_above == ["line 4", "line 5"]
        assert context.context_below == ["line 11"]
        assert context.full_context == client.generate_context.return_value

    def test_unlocated_todo_keeps_model_text(self, twenty_line_file, make_match):
        todo = make_match(twenty_line_file, 10)
        client = MagicMock()
        client.generate_context.return_value = "   1 | line 1\n   2 | line 2"

        context = extract_context(todo, 2, 2, use_ai=True, model_client=client)

        assert context.context_above == []
        assert context.context_below == []
        assert context.full_context == "   1 | line 1\n   2 | line 2"

    def test_model_text_kept_verbatim(self, twenty_line_file, make_match):
        todo = make_match(twenty_line_file, 10)
        client = MagicMock()
        client.generate_context.return_value = (
            "\n  10 |     compute()  # TODO: handle overflow\n  11 | line 11\n"
        )

        context = extract_context(todo, 2, 2, use_ai=True, model_client=client)

        assert context.full_context == client.generate_context.return_value
        assert context.context_above == [""]
        assert context.context_below == ["line 11", ""]

    def test_failing_model_falls_back_to_fixed_window(self, twenty_line_file, make_match):
        todo = make_match(twenty_line_file, 10)
        client = MagicMock()
        client.generate_context.side_effect = ModelClientError("timeout")

        with_ai = extract_context(todo, 5, 10, use_ai=True, model_client=client)
        without_ai = extract_context(todo, 5, 10)

        assert with_ai == without_ai

    def test_unexpected_model_error_falls_back(self, twenty_line_file, make_match):
        todo = make_match(twenty_line_file, 10)
        client = MagicMock()
        client.generate_context.side_effect = RuntimeError("boom")

        assert extract_context(todo, 3, 3, use_ai=True, model_client=client) == extract_context(
            todo, 3, 3
        )

    def test_empty_model_answer_falls_back(self, twenty_line_file, make_match):
        todo = make_match(twenty_line_file, 10)
        client = MagicMock()
        client.generate_context.return_value = "   \n"

        assert extract_context(todo, 3, 3, use_ai=True, model_client=client) == extract_context(
            todo, 3, 3
        )

    def test_use_ai_without_client_uses_fixed_window(self, twenty_line_file, make_match):
        todo = make_match(twenty_line_file, 10)
        assert extract_context(todo, 2, 2, use_ai=True) == extract_context(todo, 2, 2)

    def test_client_ignored_when_ai_disabled(self, twenty_line_file, make_match):
        client = MagicMock()
        extract_context(make_match(twenty_line_file, 10), 2, 2, use_ai=False, model_client=client)
        client.generate_context.assert_not_called()


@pytest.mark.unit
class TestSplitNumberedContext:
    @pytest.fixture
    def todo(self):
        return TodoMatch(
            file_path="/src/app.ts",
            line_number=7,
            line="  foo(); // TODO: fix",
            match="// TODO: fix",
            description="fix",
        )

    def test_exact_line_match(self, todo):
        text = "   6 | const a = 1;\n   7 |   foo(); // TODO: fix\n   8 | }"
        assert split_numbered_context(text, todo) == (["const a = 1;"], ["}"])

    def test_indentation_preserved(self, todo):
        text = "   5 |     if (x) {\n   7 |   foo(); // TODO: fix\n   8 |     }"
        assert split_numbered_context(text, todo) == (["    if (x) {"], ["    }"])

    def test_number_only_match_when_text_drifts(self, todo):
        text = "   6 | a\n   7 | foo(); // TODO: fix\n   8 | b"
        assert split_numbered_context(text, todo) == (["a"], ["b"])

    def test_exact_match_preferred_over_number_only(self, todo):
        text = "   7 | something else\n   7 |   foo(); // TODO: fix\n   8 | b"
        above, below = split_numbered_context(text, todo)
        assert above == ["something else"]
        assert below == ["b"]

    def test_blank_numbered_line_without_trailing_space(self, todo):
        text = "   6 |\n   7 |   foo(); // TODO: fix"
        assert split_numbered_context(text, todo) == ([""], [])

    def test_undecorated_lines_kept_verbatim(self, todo):
        text = "...\n   7 |   foo(); // TODO: fix\n..."
        assert split_numbered_context(text, todo) == (["..."], ["..."])

    def test_missing_todo_line(self, todo):
        assert split_numbered_context("   1 | a\n   2 | b", todo) == ([], [])

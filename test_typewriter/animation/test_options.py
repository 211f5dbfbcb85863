"""Unit-test suite for the `typewriter.animation.options` module."""

from __future__ import annotations

from typing import Any, Dict

import pytest

from typewriter.animation.options import TypewriterOptions
from typewriter.errors import InvalidConfigurationError


class DescribeTypewriterOptions:
    """Unit-test suite for `typewriter.animation.options.TypewriterOptions`."""

    def it_has_sensible_defaults(self):
        options = TypewriterOptions(items=["a"])

        assert options.type_speed == 0.1
        assert options.delete_speed == 0.05
        assert options.delay_between == 1
        assert options.loop is False
        assert options.html_enabled is False
        assert options.sanitize is True
        assert options.max_html_length == 10000
        assert options.max_cache_size == 50
        assert options.line_accumulation is False
        assert options.initial_delay == 0
        assert options.iterable_delay == 0.5
        assert options.min_line_length == 0
        assert options.padding_char == " "
        assert options.normalize_lines is False

    def it_takes_its_size_limits_from_the_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("TYPEWRITER_MAX_HTML_LENGTH", "64")
        monkeypatch.setenv("TYPEWRITER_MAX_CACHE_SIZE", "7")

        options = TypewriterOptions(items=["a"])

        assert options.max_html_length == 64
        assert options.max_cache_size == 7

    def it_accepts_valid_options(self):
        TypewriterOptions(
            items=["a", {"key": "b"}],
            delay_between=0,
            initial_delay=0.5,
            min_line_length=10,
            padding_char="",
        ).validate()

    @pytest.mark.parametrize(
        ("changes", "message"),
        [
            ({"items": []}, "items must be a non-empty sequence"),
            ({"items": "abc"}, "items must be a non-empty sequence"),
            ({"type_speed": 0}, "type_speed must be a positive number"),
            ({"type_speed": -0.1}, "type_speed must be a positive number"),
            ({"type_speed": True}, "type_speed must be a positive number"),
            ({"delete_speed": "fast"}, "delete_speed must be a positive number"),
            ({"delete_speed": float("nan")}, "delete_speed must be a positive number"),
            ({"delay_between": -1}, "delay_between must be a non-negative number"),
            ({"max_html_length": 0}, "max_html_length must be a positive integer"),
            ({"max_html_length": 1.5}, "max_html_length must be a positive integer"),
            ({"max_cache_size": False}, "max_cache_size must be a positive integer"),
            ({"initial_delay": -0.5}, "initial_delay must be a non-negative number"),
            ({"iterable_delay": None}, "iterable_delay must be a non-negative number"),
            ({"min_line_length": -3}, "min_line_length must be a non-negative number"),
            ({"padding_char": None}, "padding_char must be a string"),
        ],
    )
    def but_it_rejects_an_out_of_range_option(self, changes: Dict[str, Any], message: str):
        options = TypewriterOptions(**{"items": ["a"], **changes})

        with pytest.raises(InvalidConfigurationError, match=message) as e:
            options.validate()

        assert e.value.context == "validateInputs"

    def it_ignores_callbacks_in_its_structural_key(self):
        a = TypewriterOptions(items=["x"], on_tick=lambda text, index: None)
        b = TypewriterOptions(items=["x"], on_complete=lambda: None, resolve=str.upper)

        assert a.structural_key == b.structural_key
        assert a == b

    @pytest.mark.parametrize(
        "changes",
        [
            {"items": ["y"]},
            {"type_speed": 0.2},
            {"loop": True},
            {"line_accumulation": True},
            {"html_enabled": True},
            {"initial_delay": 1},
        ],
    )
    def and_changes_it_for_any_structural_option(self, changes: Dict[str, Any]):
        before = TypewriterOptions(items=["x"])
        after = TypewriterOptions(**{"items": ["x"], **changes})

        assert before.structural_key != after.structural_key

    def but_not_for_a_presentation_option(self):
        before = TypewriterOptions(items=["x"])
        after = TypewriterOptions(items=["x"], padding_char=".", min_line_length=4)

        assert before.structural_key == after.structural_key

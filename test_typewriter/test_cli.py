import asyncio
from typing import List

import pytest
from click.testing import CliRunner
from pytest_mock import MockerFixture

from typewriter import cli
from typewriter.animation.options import TypewriterOptions
from typewriter.animation.orchestrator import TypewriterView


@pytest.fixture(autouse=True)
def _quiet_logging(mocker: MockerFixture, monkeypatch: pytest.MonkeyPatch):
    mocker.patch("typewriter.cli.log_streaming_init")
    monkeypatch.setenv("TYPEWRITER_ERASE_SETTLE_DELAY", "0")


FAST = ["--type-speed", "0.001", "--delete-speed", "0.001", "--delay-between", "0"]


def test_run_typewriter_completes_a_sequence():
    views: List[TypewriterView] = []
    options = TypewriterOptions(items=["ab"], type_speed=0.001, delete_speed=0.001, delay_between=0)

    assert asyncio.run(cli.run_typewriter(options, views.append)) is True
    assert "ab" in [view.displayed_plain_text for view in views]
    assert views[-1] == TypewriterView()


def test_run_typewriter_leaves_the_last_frame_rendered():
    views: List[TypewriterView] = []
    options = TypewriterOptions(
        items=["a", "b"], type_speed=0.001, line_accumulation=True, iterable_delay=0
    )

    assert asyncio.run(cli.run_typewriter(options, views.append)) is True
    assert views[-1].displayed_plain_text == "a\nb"


def test_run_typewriter_returns_false_for_invalid_options():
    assert asyncio.run(cli.run_typewriter(TypewriterOptions(items=[]))) is False


def test_run_typewriter_still_calls_the_given_on_complete(mocker: MockerFixture):
    on_complete = mocker.Mock()
    options = TypewriterOptions(
        items=["a"], type_speed=0.001, delete_speed=0.001, delay_between=0, on_complete=on_complete
    )

    asyncio.run(cli.run_typewriter(options))

    on_complete.assert_called_once_with()


def test_terminal_renderer_redraws_multiline_text_in_place():
    written: List[str] = []
    renderer = cli.TerminalRenderer(echo=lambda text, nl=True: written.append(text))

    renderer(TypewriterView(displayed_plain_text="a"))
    renderer(TypewriterView(displayed_plain_text="a\nb"))
    renderer(TypewriterView(displayed_plain_text="a\nbc"))

    assert written == ["a", "\r\x1b[Ja\nb", "\x1b[1A\r\x1b[Ja\nbc"]


def test_main_plays_the_items():
    result = CliRunner().invoke(cli.main, [*FAST, "hi", "<b>there</b>", "--html"])

    assert result.exit_code == 0, result.output
    assert "hi" in result.output
    assert "there" in result.output
    assert "<b>" not in result.output


def test_main_keeps_lines_when_asked():
    result = CliRunner().invoke(
        cli.main, [*FAST, "--lines", "--min-line-length", "3", "a", "b"]
    )

    assert result.exit_code == 0, result.output
    assert "a  \nb  " in result.output


def test_main_fails_on_invalid_options():
    result = CliRunner().invoke(cli.main, ["--type-speed", "0", "hi"])

    assert result.exit_code == 1


def test_main_requires_at_least_one_item():
    result = CliRunner().invoke(cli.main, [])

    assert result.exit_code == 2

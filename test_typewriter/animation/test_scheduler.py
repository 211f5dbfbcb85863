# pyright: reportPrivateUsage=false

"""Unit-test suite for the `typewriter.animation.scheduler` module."""

from __future__ import annotations

from typing import List, Optional, Tuple

import pytest

from test_typewriter.unit_utils import Mock
from typewriter.animation.scheduler import ItemContent, Phase, RevealEraseScheduler
from typewriter.animation.timers import ManualTimer
from typewriter.documents.segments import SegmentParser
from typewriter.errors import TickFailureError


class FrameRecorder:
    """Collects every frame the scheduler emits."""

    def __init__(self):
        self.frames: List[Tuple[str, Optional[str]]] = []

    def __call__(self, plain_text: str, markup: Optional[str]) -> None:
        self.frames.append((plain_text, markup))

    @property
    def plain(self) -> List[str]:
        return [plain for plain, _ in self.frames]


class DescribeItemContent:
    """Unit-test suite for `typewriter.animation.scheduler.ItemContent`."""

    def it_frames_plain_text_without_markup(self):
        content = ItemContent("hello")

        assert content.length == 5
        assert content.markup is None
        assert content.frame(2) == ("he", None)
        assert content.frame(-1) == ("", None)

    def it_frames_markup_alongside_the_plain_text(self):
        fragment = SegmentParser().parse("<b>hi</b> there")
        content = ItemContent(fragment.plain_text, fragment)

        assert content.markup == "<b>hi</b> there"
        assert content.frame(1) == ("h", "<b>h")
        assert content.frame(3) == ("hi ", "<b>hi</b> ")


class DescribeRevealEraseScheduler:
    """Unit-test suite for `typewriter.animation.scheduler.RevealEraseScheduler`."""

    def it_reveals_one_character_per_tick_the_first_immediately(
        self, timer: ManualTimer, frames: FrameRecorder
    ):
        scheduler = RevealEraseScheduler(timer, type_speed=0.1, delay_between=1)
        on_complete = Mock()

        scheduler.reveal(ItemContent("ab"), frames, on_complete)

        assert frames.plain == ["a"]
        assert scheduler.phase is Phase.REVEALING
        timer.advance(0.1)
        assert frames.plain == ["a", "ab"]
        timer.advance(0.1)
        assert frames.plain == ["a", "ab", "ab"]
        assert scheduler.phase is Phase.PAUSED_AFTER_REVEAL
        on_complete.assert_not_called()

        timer.advance(1)

        on_complete.assert_called_once_with()
        assert scheduler.phase is Phase.IDLE
        assert not scheduler.has_pending_tick

    def it_calls_on_revealed_as_soon_as_the_item_shows_in_full(self, timer: ManualTimer):
        scheduler = RevealEraseScheduler(timer, type_speed=0.1, delay_between=1)
        on_revealed = Mock()

        scheduler.reveal(ItemContent("a"), Mock(), Mock(), on_revealed=on_revealed)
        on_revealed.assert_not_called()
        timer.advance(0.1)

        on_revealed.assert_called_once_with()
        assert scheduler.has_pending_tick

    def it_erases_the_last_revealed_item(self, timer: ManualTimer, frames: FrameRecorder):
        scheduler = RevealEraseScheduler(
            timer, type_speed=0.1, delete_speed=0.05, delay_between=1, erase_settle_delay=0.2
        )
        scheduler.reveal(ItemContent("abc"), Mock(), Mock())
        timer.run_until_idle()
        on_complete = Mock()

        scheduler.erase(frames, on_complete)

        assert frames.plain == ["ab"]
        assert scheduler.phase is Phase.ERASING
        timer.advance(0.11)
        assert frames.plain == ["ab", "a", ""]
        assert scheduler.phase is Phase.PAUSED_AFTER_ERASE
        assert scheduler.position == 0
        timer.advance(0.15)
        on_complete.assert_not_called()

        timer.advance(0.1)

        on_complete.assert_called_once_with()

    def it_takes_its_erase_settle_delay_from_the_environment(
        self, timer: ManualTimer, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setenv("TYPEWRITER_ERASE_SETTLE_DELAY", "3")
        scheduler = RevealEraseScheduler(timer, delete_speed=0.05)
        scheduler.reveal(ItemContent("a"), Mock(), Mock())
        timer.run_until_idle()
        on_complete = Mock()

        scheduler.erase(Mock(), on_complete)
        timer.advance(2.9)
        on_complete.assert_not_called()
        timer.advance(0.2)

        on_complete.assert_called_once_with()

    def it_pauses_for_the_iterable_delay_when_accumulating_lines(self, timer: ManualTimer):
        scheduler = RevealEraseScheduler(
            timer, type_speed=0.1, delay_between=5, iterable_delay=0.5, line_accumulation=True
        )
        on_complete = Mock()

        scheduler.reveal(ItemContent("a"), Mock(), on_complete)
        timer.advance(0.1)
        assert scheduler.phase is Phase.ACCUMULATING
        timer.advance(0.5)

        on_complete.assert_called_once_with()

    def it_emits_only_paired_markup_frames_in_html_mode(
        self, timer: ManualTimer, frames: FrameRecorder
    ):
        fragment = SegmentParser().parse("<i>ok</i>")
        scheduler = RevealEraseScheduler(timer)

        scheduler.reveal(ItemContent(fragment.plain_text, fragment), frames, Mock())
        timer.run_until_idle()

        assert frames.frames == [("o", "<i>o"), ("ok", "<i>ok</i>"), ("ok", "<i>ok</i>")]

    def it_keeps_at_most_one_tick_pending(self, timer: ManualTimer):
        scheduler = RevealEraseScheduler(timer)

        scheduler.reveal(ItemContent("abc"), Mock(), Mock())
        scheduler.reveal(ItemContent("xyz"), Mock(), Mock())

        assert timer.pending == 1

    def it_can_cancel_its_pending_tick(self, timer: ManualTimer):
        scheduler = RevealEraseScheduler(timer)
        scheduler.reveal(ItemContent("abc"), Mock(), Mock())

        scheduler.cancel()

        assert timer.pending == 0
        assert not scheduler.has_pending_tick

    def it_does_nothing_once_it_is_no_longer_active(
        self, timer: ManualTimer, frames: FrameRecorder
    ):
        active = [True]
        scheduler = RevealEraseScheduler(timer, is_active=lambda: active[0])
        on_complete = Mock()
        scheduler.reveal(ItemContent("abc"), frames, on_complete)

        active[0] = False
        timer.run_until_idle()

        assert frames.plain == ["a"]
        on_complete.assert_not_called()

    def it_reports_a_failing_tick_and_forces_the_phase_to_complete(self, timer: ManualTimer):
        on_error = Mock()
        on_complete = Mock()
        scheduler = RevealEraseScheduler(timer, on_error=on_error)
        failure = RuntimeError("render blew up")

        scheduler.reveal(ItemContent("abc"), Mock(side_effect=failure), on_complete)

        (error,), _ = on_error.call_args
        assert isinstance(error, TickFailureError)
        assert error.context == "revealing"
        assert error.__cause__ is failure
        on_complete.assert_not_called()

        timer.step()

        on_complete.assert_called_once_with()
        assert timer.pending == 0

    # -- fixtures --------------------------------------------------------------------------------

    @pytest.fixture
    def timer(self) -> ManualTimer:
        return ManualTimer()

    @pytest.fixture
    def frames(self) -> FrameRecorder:
        return FrameRecorder()

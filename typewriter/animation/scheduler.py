"""Reveal/erase state machine for a single item.

    IDLE -> REVEALING -> PAUSED_AFTER_REVEAL -> ERASING -> PAUSED_AFTER_ERASE -> IDLE   (discrete)
    IDLE -> REVEALING -> ACCUMULATING -> IDLE                                         (lines)

Each state has exactly one handler, run by `tick()`, and at most one timer callback is pending at
any moment. A handler that raises reports a `TickFailureError` and forces the phase to complete,
so one broken item can't stall the sequence.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from typewriter.animation.timers import Timer
from typewriter.config import env_config
from typewriter.documents.segments import ParsedFragment
from typewriter.errors import TickFailureError
from typewriter.logger import logger, trace_logger


class Phase(str, enum.Enum):
    IDLE = "idle"
    INITIAL_DELAY = "initial_delay"
    REVEALING = "revealing"
    PAUSED_AFTER_REVEAL = "paused_after_reveal"
    ACCUMULATING = "accumulating"
    ERASING = "erasing"
    PAUSED_AFTER_ERASE = "paused_after_erase"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ItemContent:
    """A resolved item ready to reveal: its plain text and, in HTML mode, its parsed markup."""

    plain_text: str
    fragment: Optional[ParsedFragment] = None

    @property
    def length(self) -> int:
        return len(self.plain_text)

    @property
    def markup(self) -> Optional[str]:
        return None if self.fragment is None else self.fragment.markup

    def frame(self, visible_count: int) -> Tuple[str, Optional[str]]:
        """Plain text and markup showing the first `visible_count` characters."""
        count = max(0, visible_count)
        markup = None if self.fragment is None else self.fragment.markup_prefix(count)
        return self.plain_text[:count], markup


FrameCallback = Callable[[str, Optional[str]], None]
PhaseCallback = Callable[[], None]


class RevealEraseScheduler:
    """Drives one item through reveal and then either erase or accumulation.

    `is_active` is consulted at the top of every tick; once it returns False every callback still
    in flight does nothing.
    """

    def __init__(
        self,
        timer: Timer,
        type_speed: float = 0.1,
        delete_speed: float = 0.05,
        delay_between: float = 1,
        iterable_delay: float = 0.5,
        line_accumulation: bool = False,
        erase_settle_delay: Optional[float] = None,
        is_active: Callable[[], bool] = lambda: True,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self._timer = timer
        self._type_speed = type_speed
        self._delete_speed = delete_speed
        self._delay_between = delay_between
        self._iterable_delay = iterable_delay
        self._line_accumulation = line_accumulation
        self._erase_settle_delay = (
            env_config.TYPEWRITER_ERASE_SETTLE_DELAY
            if erase_settle_delay is None
            else erase_settle_delay
        )
        self._is_active = is_active
        self._on_error = on_error

        self._phase = Phase.IDLE
        self._position = 0
        self._content = ItemContent("")
        self._on_frame: Optional[FrameCallback] = None
        self._on_revealed: Optional[PhaseCallback] = None
        self._on_complete: Optional[PhaseCallback] = None
        self._handle: Any = None

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def position(self) -> int:
        return self._position

    @property
    def has_pending_tick(self) -> bool:
        return self._handle is not None

    def reveal(
        self,
        content: ItemContent,
        on_frame: FrameCallback,
        on_complete: PhaseCallback,
        on_revealed: Optional[PhaseCallback] = None,
    ) -> None:
        """Reveal `content` one visible character per tick, the first tick immediately.

        `on_revealed` runs as soon as the whole item shows; `on_complete` once the pause after it
        is over.
        """
        self.cancel()
        self._content = content
        self._on_frame = on_frame
        self._on_revealed = on_revealed
        self._on_complete = on_complete
        self._position = 0
        self._phase = Phase.REVEALING
        self.tick()

    def erase(self, on_frame: FrameCallback, on_complete: PhaseCallback) -> None:
        """Erase the last revealed item one visible character per tick."""
        self.cancel()
        self._on_frame = on_frame
        self._on_revealed = None
        self._on_complete = on_complete
        self._position = self._content.length
        self._phase = Phase.ERASING
        self.tick()

    def cancel(self) -> None:
        """Drop the pending tick, if any. The phase is left as is."""
        if self._handle is not None:
            self._timer.cancel(self._handle)
            self._handle = None

    def tick(self) -> None:
        """Run the handler of the current phase."""
        if not self._is_active():
            return

        handler = self._HANDLERS.get(self._phase)
        if handler is None:
            return

        try:
            completed = handler(self)
        except Exception as e:
            logger.error(f"Typewriter error in {self._phase.value} tick: {e}")
            self.cancel()
            self._report(e)
            # -- complete on the next turn of the timer, a looping sequence of broken items would
            # -- otherwise recurse without bound
            self._handle = self._timer.schedule_after(0, self._on_forced_completion)
            return

        if completed:
            self._complete()

    # -- phase handlers; each returns True when the phase is over --

    def _tick_revealing(self) -> bool:
        self._emit(self._position + 1)
        self._position += 1

        if self._position <= self._content.length:
            self._schedule(self._type_speed)
            return False

        if self._line_accumulation:
            self._phase = Phase.ACCUMULATING
            delay = self._iterable_delay
        else:
            self._phase = Phase.PAUSED_AFTER_REVEAL
            delay = self._delay_between
        if self._on_revealed is not None:
            self._on_revealed()
        self._schedule(delay)
        return False

    def _tick_erasing(self) -> bool:
        self._emit(max(0, self._position - 1))
        self._position -= 1

        if self._position > 0:
            self._schedule(self._delete_speed)
        else:
            self._position = 0
            self._phase = Phase.PAUSED_AFTER_ERASE
            self._schedule(self._erase_settle_delay)
        return False

    def _tick_paused(self) -> bool:
        return True

    _HANDLERS: Dict[Phase, Callable[[RevealEraseScheduler], bool]] = {
        Phase.REVEALING: _tick_revealing,
        Phase.PAUSED_AFTER_REVEAL: _tick_paused,
        Phase.ACCUMULATING: _tick_paused,
        Phase.ERASING: _tick_erasing,
        Phase.PAUSED_AFTER_ERASE: _tick_paused,
    }

    # -- helpers --

    def _emit(self, visible_count: int) -> None:
        plain_text, markup = self._content.frame(visible_count)
        trace_logger.detail(  # type: ignore
            f"{self._phase.value} frame: {len(plain_text)}/{self._content.length} characters"
        )
        if self._on_frame is not None:
            self._on_frame(plain_text, markup)

    def _schedule(self, seconds: float) -> None:
        self._handle = self._timer.schedule_after(seconds, self._on_timer)

    def _on_timer(self) -> None:
        self._handle = None
        self.tick()

    def _on_forced_completion(self) -> None:
        self._handle = None
        if self._is_active():
            self._complete()

    def _complete(self) -> None:
        self._phase = Phase.IDLE
        on_complete, self._on_complete = self._on_complete, None
        if on_complete is not None:
            on_complete()

    def _report(self, e: Exception) -> None:
        if self._on_error is None:
            return
        error = TickFailureError(f"{type(e).__name__}: {e}", self._phase.value)
        error.__cause__ = e
        self._on_error(error)

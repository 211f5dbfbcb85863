"""Runs a whole sequence of items through the reveal/erase scheduler.

Per item: resolve the text, normalize its line length, truncate/sanitize/parse it when HTML is
enabled, reveal it, then either erase it (discrete mode) or keep it as a line (line-accumulation
mode) and move on. The `Typewriter` is the single owner of the immutable `CycleState` and of the
`TypewriterView` handed to the presentation layer; both are replaced, never mutated.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

from typewriter.animation.items import resolve_item
from typewriter.animation.options import TypewriterOptions
from typewriter.animation.scheduler import ItemContent, Phase, RevealEraseScheduler
from typewriter.animation.timers import Timer
from typewriter.cleaners.core import normalize_line, truncate_fragment
from typewriter.cleaners.sanitize import Sanitizer
from typewriter.documents.segments import SegmentParser
from typewriter.errors import (
    ContentTooLongError,
    InvalidConfigurationError,
    UnresolvableItemError,
)
from typewriter.logger import logger

LINE_SEPARATOR = "\n"


@dataclass(frozen=True)
class CycleState:
    """Where the sequence is. Replaced as a whole on every change."""

    item_index: int = 0
    revealed_count: int = 0
    accumulated_plain_lines: Tuple[str, ...] = ()
    accumulated_markup_lines: Tuple[str, ...] = ()
    phase: Phase = Phase.IDLE


@dataclass(frozen=True)
class TypewriterView:
    """What the presentation layer should currently show."""

    displayed_plain_text: str = ""
    displayed_markup: Optional[str] = None
    is_active: bool = False
    has_failed: bool = False


class Typewriter:
    """Sequence orchestrator; see the module docstring.

    `timer` schedules every tick. `on_render` is called with the new `TypewriterView` whenever it
    changes. A shared `sanitizer` or `parser` may be passed in; neither holds per-cycle state.
    """

    def __init__(
        self,
        options: TypewriterOptions,
        timer: Timer,
        sanitizer: Optional[Sanitizer] = None,
        parser: Optional[SegmentParser] = None,
        on_render: Optional[Callable[[TypewriterView], None]] = None,
    ):
        self._options = options
        self._timer = timer
        self._on_render = on_render
        self._sanitizer = (
            sanitizer if sanitizer is not None else Sanitizer(on_error=self._report_recoverable)
        )
        self._parser = parser if parser is not None else self._new_parser(options)
        self._active = False
        self._delay_handle: Any = None
        self._content = ItemContent("")
        self._state = CycleState()
        self._view = self._initial_view()
        self._scheduler = self._new_scheduler()

    # -- public surface --

    @property
    def options(self) -> TypewriterOptions:
        return self._options

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def view(self) -> TypewriterView:
        return self._view

    @property
    def parser(self) -> SegmentParser:
        return self._parser

    @property
    def is_active(self) -> bool:
        return self._active

    def start(self) -> bool:
        """Validate the options and start the sequence; False when it could not start."""
        if self._active:
            return True

        try:
            self._options.validate()
        except InvalidConfigurationError as e:
            self._fail(e)
            return False

        if self._state.phase in (Phase.DONE, Phase.FAILED):
            self._state = CycleState()
        self._active = True
        self._set_view(is_active=True, has_failed=False)

        if self._options.initial_delay > 0:
            self._set_state(phase=Phase.INITIAL_DELAY)
            self._delay_handle = self._timer.schedule_after(
                self._options.initial_delay, self._on_initial_delay
            )
        else:
            self._run_item()
        return True

    def reset(self, options: Optional[TypewriterOptions] = None, restart: bool = True) -> None:
        """Cancel everything pending, reset the cycle and, by default, start over."""
        self._teardown()
        if options is not None:
            if options.max_cache_size != self._options.max_cache_size:
                self._parser = self._new_parser(options)
            self._options = options
        self._scheduler = self._new_scheduler()
        self._content = ItemContent("")
        self._state = CycleState()
        self._set_view(**dataclasses.asdict(self._initial_view()))
        if restart:
            self.start()

    def update(self, options: TypewriterOptions) -> None:
        """Apply new options; a structural change restarts the sequence, anything else doesn't."""
        if options.structural_key != self._options.structural_key or (
            options.max_cache_size != self._options.max_cache_size
        ):
            self.reset(options, restart=self._active)
        else:
            self._options = options

    def shutdown(self) -> None:
        """Stop for good: cancel pending ticks, reset the cycle and drop the parse cache.

        A later `start()` begins again from the first item.
        """
        self.reset(restart=False)
        self._parser.clear_cache()

    # -- sequence --

    def _on_initial_delay(self) -> None:
        self._delay_handle = None
        self._run_item()

    def _run_item(self) -> None:
        if not self._active:
            return

        try:
            index = self._state.item_index
            text = resolve_item(
                self._options.items[index],
                self._options.resolve,
                index=index,
                on_error=self._report_recoverable,
            )
            self._content = self._prepare(self._normalize(text))
            self._set_state(revealed_count=0, phase=Phase.REVEALING)
            self._scheduler.reveal(
                self._content,
                on_frame=self._on_frame,
                on_complete=self._on_reveal_complete,
                on_revealed=self._on_revealed,
            )
        except UnresolvableItemError as e:
            self._fail(e)
        except Exception as e:
            logger.exception("unexpected failure while starting an item")
            self._fail(e, "runCycle")

    def _on_reveal_complete(self) -> None:
        if not self._active:
            return

        try:
            if self._options.line_accumulation:
                self._advance()
            else:
                self._set_state(phase=Phase.ERASING)
                self._scheduler.erase(on_frame=self._on_frame, on_complete=self._advance)
        except Exception as e:
            logger.exception("unexpected failure after reveal")
            self._fail(e, "runCycle")

    def _advance(self) -> None:
        if not self._active:
            return

        next_index = self._state.item_index + 1
        if next_index >= len(self._options.items):
            if not self._options.loop:
                self._finish()
                return
            next_index = 0
        self._set_state(item_index=next_index, revealed_count=0)
        self._run_item()

    def _finish(self) -> None:
        self._active = False
        self._set_state(phase=Phase.DONE)
        self._set_view(is_active=False)
        if self._options.on_complete is not None:
            try:
                self._options.on_complete()
            except Exception as e:
                logger.exception("on_complete callback failed")
                self._report(e, "onComplete")

    # -- content --

    def _normalize(self, text: str) -> str:
        options = self._options
        if not (options.line_accumulation and options.normalize_lines):
            return text
        return normalize_line(
            text,
            int(options.min_line_length),
            options.padding_char,
            html_mode=options.html_enabled,
            visible_text=self._sanitizer.strip_tags,
        )

    def _prepare(self, text: str) -> ItemContent:
        options = self._options
        if not options.html_enabled:
            return ItemContent(text)

        original_length = len(text)
        text, truncated = truncate_fragment(text, options.max_html_length)
        if truncated:
            self._report_recoverable(
                ContentTooLongError(
                    original_length, options.max_html_length, "processHtmlContent"
                )
            )
        markup = self._sanitizer.sanitize(text) if options.sanitize else text
        fragment = self._parser.parse(markup)
        return ItemContent(fragment.plain_text, fragment)

    # -- frames --

    def _on_frame(self, plain_text: str, markup: Optional[str]) -> None:
        if not self._active:
            return

        state = self._state
        plain_prefix = markup_prefix = ""
        if self._options.line_accumulation and state.accumulated_plain_lines:
            plain_prefix = LINE_SEPARATOR.join(state.accumulated_plain_lines) + LINE_SEPARATOR
            markup_prefix = LINE_SEPARATOR.join(state.accumulated_markup_lines) + LINE_SEPARATOR

        displayed_plain_text = plain_prefix + plain_text
        displayed_markup = None if markup is None else markup_prefix + markup

        self._set_state(revealed_count=len(plain_text), phase=self._scheduler.phase)
        changed = displayed_plain_text != self._view.displayed_plain_text
        self._set_view(
            displayed_plain_text=displayed_plain_text,
            displayed_markup=displayed_markup,
        )
        if changed and self._options.on_tick is not None:
            self._options.on_tick(displayed_plain_text, state.item_index)

    def _on_revealed(self) -> None:
        if not self._options.line_accumulation:
            self._set_state(phase=self._scheduler.phase)
            return
        content = self._content
        self._set_state(
            accumulated_plain_lines=self._state.accumulated_plain_lines + (content.plain_text,),
            accumulated_markup_lines=self._state.accumulated_markup_lines
            + (content.markup or "",),
            phase=Phase.ACCUMULATING,
        )

    # -- errors --

    def _report(self, error: Exception, context: Optional[str] = None) -> None:
        context = context or getattr(error, "context", None) or "typewriter"
        logger.error(f"Typewriter error in {context}: {error}")
        if self._options.on_error is None:
            return
        try:
            self._options.on_error(error)
        except Exception:
            logger.exception("on_error callback failed")

    def _report_recoverable(self, error: Exception) -> None:
        self._report(error)

    def _fail(self, error: Exception, context: Optional[str] = None) -> None:
        """Report `error`, stop the sequence and switch the view to its degraded form."""
        self._teardown()
        self._set_state(phase=Phase.FAILED)
        self._set_view(is_active=False, has_failed=True)
        self._report(error, context)

    # -- plumbing --

    def _teardown(self) -> None:
        self._active = False
        self._scheduler.cancel()
        if self._delay_handle is not None:
            self._timer.cancel(self._delay_handle)
            self._delay_handle = None

    def _new_parser(self, options: TypewriterOptions) -> SegmentParser:
        max_cache_size = options.max_cache_size
        if not isinstance(max_cache_size, int) or max_cache_size < 1:
            # -- validation reports the bad value when the sequence starts --
            max_cache_size = 1
        return SegmentParser(max_cache_size, on_error=self._report_recoverable)

    def _new_scheduler(self) -> RevealEraseScheduler:
        options = self._options
        return RevealEraseScheduler(
            self._timer,
            type_speed=options.type_speed,
            delete_speed=options.delete_speed,
            delay_between=options.delay_between,
            iterable_delay=options.iterable_delay,
            line_accumulation=options.line_accumulation,
            is_active=lambda: self._active,
            on_error=self._report_recoverable,
        )

    def _initial_view(self) -> TypewriterView:
        return TypewriterView(displayed_markup="" if self._options.html_enabled else None)

    def _set_state(self, **changes: Any) -> None:
        self._state = dataclasses.replace(self._state, **changes)

    def _set_view(self, **changes: Any) -> None:
        view = dataclasses.replace(self._view, **changes)
        if view == self._view:
            return
        self._view = view
        if self._on_render is not None:
            self._on_render(view)


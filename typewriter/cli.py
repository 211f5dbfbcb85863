#!/usr/bin/env python3
"""Plays a typewriter sequence in the terminal.

    python -m typewriter.cli "Hello" "<b>world</b>" --html --lines
"""

import asyncio
import dataclasses
import logging
import sys
from typing import Callable, Optional, Tuple

import click

from typewriter.animation.options import TypewriterOptions
from typewriter.animation.orchestrator import Typewriter, TypewriterView
from typewriter.animation.timers import AsyncioTimer
from typewriter.logger import get_logger, log_streaming_init, logger


class TerminalRenderer:
    """Redraws the displayed plain text in place, however many lines it spans."""

    def __init__(self, echo: Callable[..., None] = click.echo):
        self._echo = echo
        self._lines = 0

    def __call__(self, view: TypewriterView) -> None:
        parts = []
        if self._lines > 1:
            parts.append(f"\x1b[{self._lines - 1}A")
        if self._lines:
            parts.append("\r\x1b[J")
        parts.append(view.displayed_plain_text)
        self._echo("".join(parts), nl=False)
        self._lines = view.displayed_plain_text.count("\n") + 1

    def finish(self) -> None:
        if self._lines:
            self._echo("")


async def run_typewriter(
    options: TypewriterOptions, render: Optional[Callable[[TypewriterView], None]] = None
) -> bool:
    """Runs `options` on the running event loop; True once the sequence completes.

    Returns False as soon as the view reports a failure. A looping sequence only ends when the
    task is canceled. `render` sees no view after that, so the last frame stays on screen.
    """
    loop = asyncio.get_running_loop()
    finished: "asyncio.Future[bool]" = loop.create_future()

    def on_render(view: TypewriterView) -> None:
        if finished.done():
            return
        if render is not None:
            render(view)
        if view.has_failed and not finished.done():
            finished.set_result(False)

    def on_complete() -> None:
        if options.on_complete is not None:
            options.on_complete()
        if not finished.done():
            finished.set_result(True)

    typewriter = Typewriter(
        dataclasses.replace(options, on_complete=on_complete), AsyncioTimer(), on_render=on_render
    )
    try:
        typewriter.start()
        return await finished
    finally:
        if not finished.done():
            finished.cancel()
        typewriter.shutdown()


@click.command()
@click.argument("items", nargs=-1, required=True)
@click.option(
    "--type-speed", default=0.1, show_default=True, help="Seconds per revealed character."
)
@click.option(
    "--delete-speed", default=0.05, show_default=True, help="Seconds per erased character."
)
@click.option(
    "--delay-between",
    default=1.0,
    show_default=True,
    help="Seconds an item stays fully revealed before it is erased.",
)
@click.option(
    "--initial-delay", default=0.0, show_default=True, help="Seconds before the first item."
)
@click.option("--loop", is_flag=True, default=False, help="Start over after the last item.")
@click.option(
    "--html",
    "html_enabled",
    is_flag=True,
    default=False,
    help="Treat items as HTML fragments; only their text is shown.",
)
@click.option(
    "--lines",
    "line_accumulation",
    is_flag=True,
    default=False,
    help="Keep every revealed item as a line instead of erasing it.",
)
@click.option(
    "--min-line-length",
    default=0,
    show_default=True,
    help="Pad each accumulated line to this many visible characters.",
)
@click.option("-v", "--verbose", is_flag=True, default=False)
def main(
    items: Tuple[str, ...],
    type_speed: float,
    delete_speed: float,
    delay_between: float,
    initial_delay: float,
    loop: bool,
    html_enabled: bool,
    line_accumulation: bool,
    min_line_length: int,
    verbose: bool,
):
    log_streaming_init(logging.DEBUG if verbose else get_logger().level)
    options = TypewriterOptions(
        items=items,
        type_speed=type_speed,
        delete_speed=delete_speed,
        delay_between=delay_between,
        initial_delay=initial_delay,
        loop=loop,
        html_enabled=html_enabled,
        line_accumulation=line_accumulation,
        min_line_length=min_line_length,
        normalize_lines=min_line_length > 0,
    )
    renderer = TerminalRenderer()
    try:
        completed = asyncio.run(run_typewriter(options, renderer))
    except KeyboardInterrupt:
        renderer.finish()
        sys.exit(130)
    renderer.finish()
    if not completed:
        logger.error("typewriter sequence failed")
        sys.exit(1)


if __name__ == "__main__":
    main()

import html
from typing import Callable, Optional, Tuple

from typewriter.cleaners.sanitize import strip_tags


def normalize_line(
    text: str,
    min_length: int,
    padding_char: str = " ",
    html_mode: bool = False,
    visible_text: Optional[Callable[[str], str]] = None,
) -> str:
    """Pads `text` so its visible length is at least `min_length`.

    In HTML mode the padding is wrapped in a transparent span so it takes up room on screen and in
    the plain-text projection without being seen.

    Example
    -------
    hi (min_length=5, padding_char=".") -> hi...
    """
    visible = (visible_text or strip_tags)(text) if html_mode else text
    padding_needed = min_length - len(visible)
    if padding_needed <= 0 or not padding_char:
        return text

    padding = padding_char * padding_needed
    if html_mode:
        return f'{text}<span style="opacity: 0;">{html.escape(padding, quote=False)}</span>'
    return text + padding


def truncate_fragment(fragment: str, max_length: int) -> Tuple[str, bool]:
    """The first `max_length` characters of `fragment` and whether anything was cut off.

    Example
    -------
    abcdef (max_length=4) -> (abcd, True)
    """
    if len(fragment) <= max_length:
        return fragment, False
    return fragment[:max_length], True

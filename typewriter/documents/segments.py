"""Splits a markup fragment into visible text and tag segments.

The segment model answers the one question the typewriter keeps asking: *what markup shows exactly
the first N visible characters of this fragment?* Tags never consume a position; text does, with a
character reference like `&amp;` counting as the character it stands for.

The answer is deliberately not a balanced document. Every tag met before the cut-off is emitted
verbatim, so a prefix like `<b>He` leaves `<b>` open. That's "what is currently shown", and any
HTML renderer closes it for free.
"""

from __future__ import annotations

import enum
import html
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional, Tuple

from typewriter.config import env_config
from typewriter.errors import ParseFailureError
from typewriter.logger import logger
from typewriter.nlp.patterns import ANY_TAG_RE, CHARACTER_REFERENCE_RE, TAG_BOUNDARY_RE
from typewriter.utils import lazyproperty

# ------------------------------------------------------------------------------------------------
# DOMAIN MODEL
# ------------------------------------------------------------------------------------------------


class SegmentKind(str, enum.Enum):
    TEXT = "text"
    TAG_OPEN = "tag_open"
    TAG_CLOSE = "tag_close"


@dataclass(frozen=True)
class Segment:
    """One run of a fragment, either visible text or a single tag."""

    kind: SegmentKind
    content: str
    is_visible: bool = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "is_visible", self.kind is SegmentKind.TEXT)

    @lazyproperty
    def plain_text(self) -> str:
        """Visible text of this segment, "" for a tag."""
        if not self.is_visible:
            return ""
        return "".join(decoded for _, decoded in self._iter_units())

    @property
    def length(self) -> int:
        """Number of visible positions this segment consumes."""
        return len(self.plain_text)

    def prefix(self, count: int) -> str:
        """Raw content showing the first `count` visible characters of this text segment.

        A character reference is never split; when the cut falls inside one that decodes to more
        than one character, the decoded part is emitted re-escaped.
        """
        parts: list[str] = []
        remaining = count
        for raw, decoded in self._iter_units():
            if remaining <= 0:
                break
            if len(decoded) <= remaining:
                parts.append(raw)
            elif raw == decoded:
                parts.append(raw[:remaining])
            else:
                parts.append(html.escape(decoded[:remaining], quote=False))
            remaining -= len(decoded)
        return "".join(parts)

    def _iter_units(self) -> Iterator[Tuple[str, str]]:
        """Generate (raw, decoded) pairs; literal runs and character references alternate."""
        position = 0
        for match in CHARACTER_REFERENCE_RE.finditer(self.content):
            if match.start() > position:
                run = self.content[position : match.start()]
                yield run, run
            reference = match.group(0)
            yield reference, html.unescape(reference)
            position = match.end()
        if position < len(self.content):
            run = self.content[position:]
            yield run, run


@dataclass(frozen=True)
class ParsedFragment:
    """Ordered segments of a fragment; concatenated `content` reconstructs the fragment."""

    segments: Tuple[Segment, ...] = ()

    @lazyproperty
    def markup(self) -> str:
        return "".join(s.content for s in self.segments)

    @lazyproperty
    def plain_text(self) -> str:
        return "".join(s.plain_text for s in self.segments if s.is_visible)

    @property
    def length(self) -> int:
        return len(self.plain_text)

    def markup_prefix(self, visible_count: int) -> str:
        """Markup showing exactly the first `visible_count` visible characters."""
        if visible_count <= 0:
            return ""

        parts: list[str] = []
        position = 0
        for segment in self.segments:
            if not segment.is_visible:
                # -- tags never consume position budget --
                parts.append(segment.content)
                continue

            remaining = visible_count - position
            if remaining <= 0:
                break
            if segment.length <= remaining:
                parts.append(segment.content)
                position += segment.length
            else:
                parts.append(segment.prefix(remaining))
                break
        return "".join(parts)


EMPTY_FRAGMENT = ParsedFragment()


# ------------------------------------------------------------------------------------------------
# CACHE
# ------------------------------------------------------------------------------------------------


class ParseCache:
    """Memo of parsed fragments keyed by the raw fragment string.

    Eviction is by insertion order (FIFO), not by use: reading an entry does not make it any
    younger. Not safe for concurrent mutation.
    """

    def __init__(self, max_size: int):
        if max_size < 1:
            raise ValueError(f"max_size must be a positive integer, got {max_size}")
        self._max_size = max_size
        self._entries: OrderedDict[str, ParsedFragment] = OrderedDict()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def max_size(self) -> int:
        return self._max_size

    def get(self, key: str) -> Optional[ParsedFragment]:
        return self._entries.get(key)

    def put(self, key: str, parsed: ParsedFragment) -> None:
        if key in self._entries:
            self._entries[key] = parsed
            return
        if len(self._entries) >= self._max_size:
            self._entries.popitem(last=False)
        self._entries[key] = parsed

    def keys(self) -> Tuple[str, ...]:
        return tuple(self._entries)

    def clear(self) -> None:
        self._entries.clear()


# ------------------------------------------------------------------------------------------------
# PARSER
# ------------------------------------------------------------------------------------------------


class SegmentParser:
    """Tokenizes fragments at tag boundaries and memoizes the result.

    `parse()` never raises. When tokenizing fails the fragment degrades to a single text segment
    with every tag stripped, and `on_error` receives a `ParseFailureError`.
    """

    def __init__(
        self,
        max_cache_size: Optional[int] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        if max_cache_size is None:
            max_cache_size = env_config.TYPEWRITER_MAX_CACHE_SIZE
        self._cache = ParseCache(max_cache_size)
        self._on_error = on_error

    @property
    def cache(self) -> ParseCache:
        return self._cache

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def clear_cache(self) -> None:
        self._cache.clear()

    def parse(self, fragment: str) -> ParsedFragment:
        if not fragment or not isinstance(fragment, str):
            return EMPTY_FRAGMENT

        cached = self._cache.get(fragment)
        if cached is not None:
            return cached

        try:
            parsed = ParsedFragment(tuple(self._tokenize(fragment)))
        except Exception as e:
            logger.error(f"HTML parsing failed: {e}")
            if self._on_error is not None:
                error = ParseFailureError(f"HTML parsing failed: {e}", "parseHtml")
                error.__cause__ = e
                self._on_error(error)
            plain_text = ANY_TAG_RE.sub("", fragment)
            return ParsedFragment((Segment(SegmentKind.TEXT, plain_text),))

        self._cache.put(fragment, parsed)
        return parsed

    def prefix_markup(self, fragment: str, visible_count: int) -> str:
        """Markup of `fragment` whose visible text is its first `visible_count` characters."""
        if visible_count <= 0 or not fragment or not isinstance(fragment, str):
            return ""
        return self.parse(fragment).markup_prefix(visible_count)

    @staticmethod
    def _tokenize(fragment: str) -> Iterator[Segment]:
        position = 0
        for match in TAG_BOUNDARY_RE.finditer(fragment):
            if match.start() > position:
                yield Segment(SegmentKind.TEXT, fragment[position : match.start()])
            tag = match.group(0)
            kind = SegmentKind.TAG_CLOSE if tag.startswith("</") else SegmentKind.TAG_OPEN
            yield Segment(kind, tag)
            position = match.end()
        if position < len(fragment):
            yield Segment(SegmentKind.TEXT, fragment[position:])

"""Allowlist sanitizer for the markup subset a typewriter can reveal.

The sanitizer works on a BeautifulSoup tree and never hands back anything the allowlists don't
name:

- An element whose tag is not allowlisted is removed *together with its subtree*. Keeping the
  children of a removed wrapper would let e.g. the body of a `<script>` surface as visible text and
  shift every visible position after it.
- Attributes not allowlisted globally or for the tag are dropped.
- `style` keeps only declarations of allowlisted CSS properties; if any kept declaration carries
  an unsafe construct (`url(`, `expression(`, ...) the whole `style` attribute is dropped.
- `class` keeps only tokens matching a utility-class pattern or a plain CSS identifier.
- `href` is dropped when it uses a `javascript:`, `data:` or `vbscript:` scheme.
- Comments, doctypes, CDATA and processing instructions are removed.

Sanitizing never raises. On any internal failure the fragment is reduced to its (escaped) text.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, FrozenSet, Mapping, Optional, Tuple

from bs4 import BeautifulSoup, NavigableString, Tag

from typewriter.config import env_config
from typewriter.errors import SanitizeFailureError
from typewriter.logger import logger
from typewriter.nlp.patterns import (
    ANY_TAG_RE,
    GENERIC_CLASS_RE,
    UNSAFE_HREF_SCHEMES,
    UNSAFE_STYLE_SUBSTRINGS,
    UTILITY_CLASS_RES,
    WHITESPACE_RE,
)

_CONTROL_AND_SPACE_RE = re.compile(r"[\x00-\x20]+")

# -- whitespace-only text is kept verbatim everywhere, not collapsed to one space --
_PRESERVE_WHITESPACE_TAGS = frozenset(("[document]", "pre", "textarea"))


@dataclass(frozen=True)
class SanitizationPolicy:
    """Static allowlists consulted by `Sanitizer`; immutable for the life of the process."""

    allowed_tags: FrozenSet[str] = frozenset(
        ("span", "div", "a", "i", "b", "strong", "em", "br", "code", "pre")
    )
    global_attributes: FrozenSet[str] = frozenset(("style", "class"))
    tag_attributes: Mapping[str, FrozenSet[str]] = field(
        default_factory=lambda: MappingProxyType(
            {
                "a": frozenset(("href", "target", "rel")),
                "span": frozenset(("style", "class")),
                "div": frozenset(("style", "class")),
            }
        )
    )
    css_properties: FrozenSet[str] = frozenset(
        (
            "color",
            "background-color",
            "font-size",
            "font-weight",
            "font-style",
            "text-decoration",
            "padding",
            "padding-left",
            "padding-right",
            "padding-top",
            "padding-bottom",
            "margin",
            "margin-left",
            "margin-right",
            "margin-top",
            "margin-bottom",
            "display",
            "width",
            "height",
            "border",
            "border-radius",
            "line-height",
            "opacity",
            "visibility",
        )
    )
    class_patterns: Tuple[re.Pattern, ...] = UTILITY_CLASS_RES
    generic_class_pattern: re.Pattern = GENERIC_CLASS_RE

    def attributes_for(self, tag_name: str) -> FrozenSet[str]:
        """Attribute names allowed on a `tag_name` element."""
        return self.global_attributes | self.tag_attributes.get(tag_name, frozenset())


DEFAULT_POLICY = SanitizationPolicy()


class Sanitizer:
    """Filters a markup fragment down to `policy`.

    `on_error` receives a `SanitizeFailureError` whenever sanitizing falls back to plain text.
    """

    def __init__(
        self,
        policy: SanitizationPolicy = DEFAULT_POLICY,
        html_parser: Optional[str] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self._policy = policy
        self._html_parser = html_parser or env_config.TYPEWRITER_HTML_PARSER
        self._on_error = on_error

    @property
    def policy(self) -> SanitizationPolicy:
        return self._policy

    def sanitize(self, fragment: str) -> str:
        """Markup of `fragment` holding only allowlisted tags, attributes, styles and classes."""
        if not fragment or not isinstance(fragment, str):
            return ""

        try:
            soup = self._parse(fragment)
            for node in list(soup.contents):
                self._sanitize_node(node)
            return soup.decode(formatter="minimal")
        except Exception as e:
            logger.warning(f"HTML sanitization failed: {e}")
            if self._on_error is not None:
                error = SanitizeFailureError(f"HTML sanitization failed: {e}", "sanitize")
                error.__cause__ = e
                self._on_error(error)
            # -- the fallback is still markup, so text like "&lt;b&gt;" must stay escaped --
            return html.escape(self.strip_tags(fragment), quote=False)

    def strip_tags(self, fragment: str) -> str:
        """The text content of `fragment`, character references decoded."""
        if not fragment or not isinstance(fragment, str):
            return ""

        try:
            return self._parse(fragment).get_text()
        except Exception as e:
            logger.warning(f"HTML stripping failed: {e}")
            return ANY_TAG_RE.sub("", fragment)

    def sanitize_styles(self, style: str) -> str:
        """Allowlisted declarations of `style` joined with "; ", or "" when any one is unsafe."""
        if not style or not isinstance(style, str):
            return ""

        declarations = [d.strip() for d in style.split(";") if d.strip()]
        allowed = [
            d
            for d in declarations
            if d.split(":", 1)[0].strip().lower() in self._policy.css_properties
        ]
        for declaration in allowed:
            lowered = declaration.lower()
            if any(s in lowered for s in UNSAFE_STYLE_SUBSTRINGS):
                logger.warning(f"unsafe style declaration rejected: {declaration!r}")
                return ""
        return "; ".join(allowed)

    def sanitize_classes(self, classes: str) -> str:
        """Class tokens of `classes` matching a utility pattern or a plain identifier."""
        if not classes or not isinstance(classes, str):
            return ""

        return " ".join(t for t in WHITESPACE_RE.split(classes) if t and self._is_safe_class(t))

    def is_safe_href(self, href: str) -> bool:
        # -- browsers ignore embedded whitespace and control characters in a scheme --
        normalized = _CONTROL_AND_SPACE_RE.sub("", href).lower()
        return not normalized.startswith(UNSAFE_HREF_SCHEMES)

    def _parse(self, fragment: str) -> BeautifulSoup:
        return BeautifulSoup(
            fragment, self._html_parser, preserve_whitespace_tags=_PRESERVE_WHITESPACE_TAGS
        )

    def _is_safe_class(self, token: str) -> bool:
        return any(p.match(token) for p in self._policy.class_patterns) or bool(
            self._policy.generic_class_pattern.match(token)
        )

    def _sanitize_node(self, node) -> None:
        if isinstance(node, Tag):
            self._sanitize_element(node)
        elif isinstance(node, NavigableString) and type(node) is not NavigableString:
            # -- Comment, Doctype, CData, ProcessingInstruction, ... --
            node.extract()

    def _sanitize_element(self, element: Tag) -> None:
        tag_name = element.name.lower()
        if tag_name not in self._policy.allowed_tags:
            element.decompose()
            return

        allowed_attributes = self._policy.attributes_for(tag_name)
        for name, value in list(element.attrs.items()):
            attr_name = name.lower()
            if attr_name not in allowed_attributes:
                del element[name]
                continue

            # -- BeautifulSoup hands back multi-valued attributes like `class` as a list --
            if isinstance(value, (list, tuple)):
                value = " ".join(value)

            if attr_name == "style":
                self._replace_or_drop(element, name, self.sanitize_styles(value))
            elif attr_name == "class":
                self._replace_or_drop(element, name, self.sanitize_classes(value))
            elif attr_name == "href" and not self.is_safe_href(value):
                del element[name]

        for child in list(element.contents):
            self._sanitize_node(child)

    @staticmethod
    def _replace_or_drop(element: Tag, name: str, value: str) -> None:
        if value:
            element[name] = value
        else:
            del element[name]


_default_sanitizer = Sanitizer()


def sanitize(fragment: str) -> str:
    """Sanitizes `fragment` with the default allowlists."""
    return _default_sanitizer.sanitize(fragment)


def strip_tags(fragment: str) -> str:
    """Text content of `fragment`."""
    return _default_sanitizer.strip_tags(fragment)

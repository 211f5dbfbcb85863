import re
from typing import Final, List, Tuple

# NOTE(typewriter) - a tag is `<name ...>` or `</name>` where name starts with a letter; anything
# else involving angle brackets ("a < b", "<3", "<!-- -->") is treated as ordinary text
TAG_BOUNDARY_PATTERN = r"</?([a-zA-Z][a-zA-Z0-9]*)\b[^<>]*>"
TAG_BOUNDARY_RE = re.compile(TAG_BOUNDARY_PATTERN)

# -- anything between angle brackets; the last-resort tag stripper --
ANY_TAG_PATTERN = r"<[^>]*>"
ANY_TAG_RE = re.compile(ANY_TAG_PATTERN)

# -- a character reference is counted as the character(s) it decodes to --
CHARACTER_REFERENCE_PATTERN = r"&(?:#[0-9]+|#[xX][0-9a-fA-F]+|[a-zA-Z][a-zA-Z0-9]*);"
CHARACTER_REFERENCE_RE = re.compile(CHARACTER_REFERENCE_PATTERN)

_COLORS = (
    "gray|red|blue|green|yellow|purple|pink|indigo|orange|teal|cyan|emerald|lime|amber|rose"
    "|violet|fuchsia|sky"
)
_SHADES = "50|100|200|300|400|500|600|700|800|900"
_SPACING = (
    r"0|0\.5|1|1\.5|2|2\.5|3|3\.5|4|5|6|7|8|9|10|11|12|14|16|20|24|28|32|36|40|44|48|52|56|60"
    r"|64|72|80|96"
)

UTILITY_CLASS_PATTERNS: Final[List[str]] = [
    rf"^text-({_COLORS})-({_SHADES})$",
    rf"^bg-({_COLORS})-({_SHADES})$",
    r"^font-(mono|sans|serif|thin|extralight|light|normal|medium|semibold|bold|extrabold|black)$",
    r"^text-(xs|sm|base|lg|xl|2xl|3xl|4xl|5xl|6xl|7xl|8xl|9xl)$",
    r"^(italic|not-italic|underline|no-underline|line-through|overline)$",
    rf"^p(l|r|t|b|x|y)?-({_SPACING})$",
    rf"^m(l|r|t|b|x|y)?-({_SPACING})$",
    r"^(block|inline|inline-block|flex|grid|hidden)$",
    rf"^hover:(text|bg)-({_COLORS})-({_SHADES})$",
    r"^(cursor-pointer|cursor-default|cursor-not-allowed)$",
    rf"^w-({_SPACING}|auto|full)$",
    rf"^h-({_SPACING}|auto|full)$",
    r"^leading-(none|tight|snug|normal|relaxed|loose|3|4|5|6|7|8|9|10)$",
    rf"^border(-[tlrb])?-({_COLORS})-({_SHADES})$",
    r"^rounded(-none|-sm|-md|-lg|-xl|-2xl|-3xl|-full)?$",
]
UTILITY_CLASS_RES: Final[Tuple[re.Pattern, ...]] = tuple(
    re.compile(pattern) for pattern in UTILITY_CLASS_PATTERNS
)

# -- a plain CSS identifier: a letter followed by letters, digits, "-" or "_" --
GENERIC_CLASS_PATTERN = r"^[a-zA-Z][a-zA-Z0-9\-_]*$"
GENERIC_CLASS_RE = re.compile(GENERIC_CLASS_PATTERN)

WHITESPACE_RE = re.compile(r"\s+")

# -- case-insensitive substrings that make a style declaration unsafe --
UNSAFE_STYLE_SUBSTRINGS: Final[Tuple[str, ...]] = (
    "javascript:",
    "expression(",
    "url(",
    "@import",
    "behavior:",
)

UNSAFE_HREF_SCHEMES: Final[Tuple[str, ...]] = ("javascript:", "data:", "vbscript:")

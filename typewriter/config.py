"""
This module contains variables that are permitted to be tweaked by the system environment, like
the default capacity of the parse cache or the tree parser handed to BeautifulSoup. Constants do
NOT belong in this module; per-instance options belong in `typewriter.animation.options`.
"""

import os
from dataclasses import dataclass


@dataclass
class ENVConfig:
    """class for configuring environment parameters"""

    def _get_string(self, var: str, default_value: str = "") -> str:
        """attempt to get the value of var from the os environment; if not present return the
        default_value"""
        return os.environ.get(var, default_value)

    def _get_int(self, var: str, default_value: int) -> int:
        if value := self._get_string(var):
            return int(value)
        return default_value

    def _get_float(self, var: str, default_value: float) -> float:
        if value := self._get_string(var):
            return float(value)
        return default_value

    @property
    def TYPEWRITER_MAX_CACHE_SIZE(self) -> int:
        """number of parsed fragments a segment parser keeps before evicting the oldest"""
        return self._get_int("TYPEWRITER_MAX_CACHE_SIZE", 50)

    @property
    def TYPEWRITER_MAX_HTML_LENGTH(self) -> int:
        """resolved fragments longer than this are truncated before sanitizing; in characters"""
        return self._get_int("TYPEWRITER_MAX_HTML_LENGTH", 10000)

    @property
    def TYPEWRITER_HTML_PARSER(self) -> str:
        """tree builder BeautifulSoup uses for sanitizing and stripping tags

        `html.parser` keeps whitespace exactly as written, which keeps visible positions stable.
        """
        return self._get_string("TYPEWRITER_HTML_PARSER", "html.parser")

    @property
    def TYPEWRITER_ERASE_SETTLE_DELAY(self) -> float:
        """pause between the last erase tick and the erase-complete callback; in seconds"""
        return self._get_float("TYPEWRITER_ERASE_SETTLE_DELAY", 0.1)


env_config = ENVConfig()

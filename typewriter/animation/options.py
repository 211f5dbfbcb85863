from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence, Tuple

from typewriter.animation.items import Item
from typewriter.config import env_config
from typewriter.errors import InvalidConfigurationError


def _default_max_html_length() -> int:
    return env_config.TYPEWRITER_MAX_HTML_LENGTH


def _default_max_cache_size() -> int:
    return env_config.TYPEWRITER_MAX_CACHE_SIZE


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class TypewriterOptions:
    """Everything a `Typewriter` is configured with.

    Speeds and delays are in seconds. `line_accumulation` keeps each revealed item on its own line
    instead of erasing it; `normalize_lines` then pads each line to `min_line_length` visible
    characters with `padding_char`.
    """

    items: Sequence[Item] = ()
    type_speed: float = 0.1
    delete_speed: float = 0.05
    delay_between: float = 1
    loop: bool = False
    html_enabled: bool = False
    sanitize: bool = True
    max_html_length: int = field(default_factory=_default_max_html_length)
    max_cache_size: int = field(default_factory=_default_max_cache_size)
    line_accumulation: bool = False
    initial_delay: float = 0
    iterable_delay: float = 0.5
    min_line_length: int = 0
    padding_char: str = " "
    normalize_lines: bool = False

    resolve: Optional[Callable[[str], Any]] = field(default=None, compare=False)
    on_tick: Optional[Callable[[str, int], None]] = field(default=None, compare=False)
    on_complete: Optional[Callable[[], None]] = field(default=None, compare=False)
    on_error: Optional[Callable[[Exception], None]] = field(default=None, compare=False)

    @property
    def structural_key(self) -> Tuple[Any, ...]:
        """Fields whose change restarts a running sequence from scratch."""
        return (
            tuple(self.items),
            self.type_speed,
            self.delete_speed,
            self.delay_between,
            self.loop,
            self.line_accumulation,
            self.html_enabled,
            self.initial_delay,
            self.iterable_delay,
        )

    def validate(self) -> None:
        """Raises `InvalidConfigurationError` naming the first option that is out of range."""
        if not self.items or isinstance(self.items, str):
            raise InvalidConfigurationError("items must be a non-empty sequence", "validateInputs")

        for name in ("type_speed", "delete_speed"):
            value = getattr(self, name)
            if not _is_number(value) or not value > 0:
                raise InvalidConfigurationError(
                    f"{name} must be a positive number", "validateInputs"
                )

        if not _is_number(self.delay_between) or not self.delay_between >= 0:
            raise InvalidConfigurationError(
                "delay_between must be a non-negative number", "validateInputs"
            )

        for name in ("max_html_length", "max_cache_size"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise InvalidConfigurationError(
                    f"{name} must be a positive integer", "validateInputs"
                )

        for name in ("initial_delay", "iterable_delay", "min_line_length"):
            value = getattr(self, name)
            if not _is_number(value) or not value >= 0:
                raise InvalidConfigurationError(
                    f"{name} must be a non-negative number", "validateInputs"
                )

        if not isinstance(self.padding_char, str):
            raise InvalidConfigurationError("padding_char must be a string", "validateInputs")

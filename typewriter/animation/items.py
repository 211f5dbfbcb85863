from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from typewriter.errors import UnresolvableItemError
from typewriter.logger import logger


@dataclass(frozen=True)
class TranslationKey:
    """An item displayed as whatever the injected `resolve` function returns for `key`."""

    key: str


Item = Union[str, TranslationKey, Mapping[str, str]]


def item_key(item: Any) -> Optional[str]:
    """The translation key `item` refers to, None when it is not a key reference."""
    if isinstance(item, TranslationKey):
        return item.key
    if isinstance(item, Mapping):
        key = item.get("key")
        return key if isinstance(key, str) and key else None
    return None


def resolve_item(
    item: Any,
    resolve: Optional[Callable[[str], Any]] = None,
    index: int = 0,
    on_error: Optional[Callable[[Exception], None]] = None,
) -> str:
    """Text to display for `item`.

    A key reference resolves through `resolve` and falls back to the raw key when there is no
    resolver, when it raises, or when it returns something other than a string. An item that
    gives no text at all raises `UnresolvableItemError`.
    """
    if isinstance(item, str):
        return item

    if isinstance(item, (TranslationKey, Mapping)):
        key = item_key(item)
        if key is None:
            raise UnresolvableItemError(index, "resolveText")
        if resolve is None:
            return key
        try:
            translated = resolve(key)
        except Exception as e:
            logger.warning(f"translation lookup failed for key {key!r}: {e}")
            if on_error is not None:
                on_error(e)
            return key
        return translated if isinstance(translated, str) else key

    if item is None:
        raise UnresolvableItemError(index, "resolveText")

    return str(item)

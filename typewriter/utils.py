from __future__ import annotations

import functools
from typing import Any, Callable, Generic, TypeVar, cast

_T = TypeVar("_T")


class lazyproperty(Generic[_T]):
    """Decorator like @property, but evaluated only on first access.

    Like @property, this can only be used to decorate methods having only a `self` parameter, and
    is accessed like an attribute on an instance, i.e. trailing parentheses are not used. Unlike
    @property, the decorated method is only evaluated on first access; the resulting value is
    cached and that same value returned on second and later access without re-evaluation of the
    method.

    A lazyproperty is read-only. Attempting to assign to a lazyproperty raises AttributeError
    unconditionally. That makes it a good fit for values derived from immutable objects, like the
    plain-text projection of a parsed fragment.

    Loosely based on: https://stackoverflow.com/a/6849299/1902513.
    """

    def __init__(self, fget: Callable[..., _T]) -> None:
        self._fget = fget
        self._name = fget.__name__
        functools.update_wrapper(self, fget)  # pyright: ignore

    def __get__(self, obj: Any, type: Any = None) -> _T:
        # --- when accessed on class, e.g. Obj.fget, just return this descriptor ---
        if obj is None:
            return self  # type: ignore

        # --- on first access the __dict__ item is absent; evaluate fget() and store it ---
        value = obj.__dict__.get(self._name)
        if value is None:
            value = self._fget(obj)
            obj.__dict__[self._name] = value
        return cast(_T, value)

    def __set__(self, obj: Any, value: Any) -> None:
        """Raises unconditionally, to preserve read-only behavior."""
        raise AttributeError("can't set attribute")


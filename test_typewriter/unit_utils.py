"""Utilities that ease unit-testing."""

from __future__ import annotations

import random
from typing import Any
from unittest.mock import ANY, MagicMock, Mock, call, create_autospec, patch

from pytest import FixtureRequest, LogCaptureFixture, MonkeyPatch  # noqa: PT013

__all__ = (
    "ANY",
    "FixtureRequest",
    "LogCaptureFixture",
    "MagicMock",
    "Mock",
    "MonkeyPatch",
    "call",
    "function_mock",
    "instance_mock",
    "method_mock",
    "random_fragment",
)


# ------------------------------------------------------------------------------------------------
# MOCKING FIXTURES
# ------------------------------------------------------------------------------------------------
# These allow full-featured and type-safe mocks to be created simply by adding a unit-test
# fixture.
# ------------------------------------------------------------------------------------------------


def function_mock(
    request: FixtureRequest, q_function_name: str, autospec: bool = True, **kwargs: Any
) -> Mock:
    """Return mock patching function with qualified name `q_function_name`.

    Patch is reversed after calling test returns.
    """
    _patch = patch(q_function_name, autospec=autospec, **kwargs)
    request.addfinalizer(_patch.stop)
    return _patch.start()


def instance_mock(
    request: FixtureRequest,
    cls: type,
    name: str | None = None,
    spec_set: bool = True,
    **kwargs: Any,
):
    """Return a mock for an instance of `cls` that draws its spec from the class.

    The mock does not allow new attributes to be set on the instance. If `name` is missing or
    |None|, the name of the returned |Mock| instance is set to *request.fixturename*.
    """
    name = name if name is not None else request.fixturename
    return create_autospec(cls, _name=name, spec_set=spec_set, instance=True, **kwargs)


def method_mock(
    request: FixtureRequest,
    cls: type,
    method_name: str,
    autospec: bool = True,
    **kwargs: Any,
):
    """Return mock for method `method_name` on `cls`.

    The patch is reversed after pytest uses it.
    """
    _patch = patch.object(cls, method_name, autospec=autospec, **kwargs)
    request.addfinalizer(_patch.stop)
    return _patch.start()


# ------------------------------------------------------------------------------------------------
# FRAGMENT GENERATION
# ------------------------------------------------------------------------------------------------

FRAGMENT_PARTS = (
    " ",
    "  ",
    "\n",
    "\t",
    "a",
    "xy",
    "&amp;",
    "&lt;",
    "&gt;",
    "&#39;",
    "<b>",
    "</b>",
    "<i>",
    "</i>",
    '<span class="text-red-500">',
    "</span>",
    "<div>",
    "</div>",
    "<br>",
    "<p>",
    "</p>",
    "<script>x</script>",
    "<!-- c -->",
    "</style>",
    "<td>",
)


def random_fragment(rng: random.Random, max_parts: int = 10) -> str:
    """A markup fragment glued together from `FRAGMENT_PARTS`, whitespace runs and stray tags
    included."""
    return "".join(rng.choice(FRAGMENT_PARTS) for _ in range(rng.randint(1, max_parts)))

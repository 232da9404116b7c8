"""
ResolutionContext

This module tracks the chain of bean names being resolved on the current
call path. The chain is used for:

- Circular reference detection of prototype and custom-scoped beans
- The resolution path reported by BeanCreationError and
  CircularReferenceError

The context is stored in a ContextVar, so every thread (and every
asyncio task) sees only its own resolution path.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional, Tuple


class ResolutionContext:
    """Immutable snapshot of one resolution path.

    Attributes:
        path: Bean names being resolved, outermost first

    Note:
        This class is used internally by the BeanFactory.
        Users should not need to interact with it directly.

    Example (internal usage)::

        with resolving("userService"):
            with resolving("userRepository"):
                current_path()  # ('userService', 'userRepository')
    """

    __slots__ = ("path",)

    def __init__(self, path: Tuple[str, ...] = ()):
        self.path = path

    def push(self, name: str) -> 'ResolutionContext':
        return ResolutionContext(self.path + (name,))

    def __contains__(self, name: str) -> bool:
        return name in self.path


# Resolution path of the current thread or task
_resolution_context: ContextVar[Optional[ResolutionContext]] = ContextVar(
    '_BEAN_INJECTION_RESOLUTION_CONTEXT',
    default=None
)


def current_path() -> Tuple[str, ...]:
    ctx = _resolution_context.get()
    return ctx.path if ctx is not None else ()


def is_resolving(name: str) -> bool:
    ctx = _resolution_context.get()
    return ctx is not None and name in ctx


@contextmanager
def resolving(name: str) -> Iterator[ResolutionContext]:
    """Push ``name`` onto the resolution path for the duration of the block."""
    parent = _resolution_context.get() or ResolutionContext()
    token = _resolution_context.set(parent.push(name))
    try:
        yield _resolution_context.get()
    finally:
        _resolution_context.reset(token)

"""
Scope

Pluggable storage strategies for custom scopes.

A custom scope decides where instances of the beans registered under its
name live. The container hands the scope a name and an object factory and
does not know what the scope's context (a request, a session, a tenant)
actually is.
"""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Dict, Hashable, Iterator, List, Optional

from .exceptions import ScopeNotActiveError

logger = logging.getLogger(__name__)


class Scope(ABC):
    """Strategy interface for a custom scope.

    Example::

        class ThreadScope(Scope):
            def __init__(self):
                self._local = threading.local()

            def get(self, name, object_factory):
                store = self._store()
                if name not in store:
                    store[name] = object_factory()
                return store[name]
            ...

        factory.register_scope("thread", ThreadScope())
    """

    @abstractmethod
    def get(self, name: str, object_factory: Callable[[], Any]) -> Any:
        """Return the instance stored for ``name``, creating it with ``object_factory`` if absent."""
        pass

    @abstractmethod
    def remove(self, name: str) -> Optional[Any]:
        """Remove and return the instance stored for ``name``, or None."""
        pass

    @abstractmethod
    def register_destruction_callback(self, name: str, callback: Callable[[], None]) -> None:
        """Register a callback to run when the instance for ``name`` leaves the scope."""
        pass

    def get_context_id(self) -> Optional[Hashable]:
        """Identifier of the currently active context, if the scope has one."""
        return None


class _ScopeContext:
    """Instances and destruction callbacks of one context of a KeyedScope."""

    def __init__(self):
        self.instances: Dict[str, Any] = {}
        self.callbacks: Dict[str, Callable[[], None]] = {}
        self.lock = threading.RLock()


class KeyedScope(Scope):
    """Scope that keeps one instance per bean per context id.

    The active context id comes from ``context_id_supplier`` when given
    (for example a function reading the current request id), otherwise
    from ``activate()``.

    Attributes:
        name: Scope name the beans are registered under
        _contexts: Context id to stored instances and callbacks

    Example::

        request_scope = KeyedScope("request")
        factory.register_scope("request", request_scope)

        with request_scope.activate("req-123"):
            ctx = factory.get_bean("requestContext")   # Created and cached
            ctx2 = factory.get_bean("requestContext")  # Same instance
        # Context ended, destruction callbacks run
    """

    def __init__(self, name: str,
                 context_id_supplier: Optional[Callable[[], Optional[Hashable]]] = None):
        self.name = name
        self._context_id_supplier = context_id_supplier
        self._active: ContextVar[Optional[Hashable]] = ContextVar(
            f'_BEAN_INJECTION_SCOPE_{name}', default=None
        )
        self._contexts: Dict[Hashable, _ScopeContext] = {}
        self._lock = threading.Lock()

    def get_context_id(self) -> Optional[Hashable]:
        if self._context_id_supplier is not None:
            return self._context_id_supplier()
        return self._active.get()

    def _current(self, create: bool) -> Optional[_ScopeContext]:
        context_id = self.get_context_id()
        if context_id is None:
            raise ScopeNotActiveError(
                f"Scope '{self.name}' is not active for the current thread. "
                f"Use 'with scope.activate(context_id):' or supply a context_id_supplier"
            )
        context = self._contexts.get(context_id)
        if context is None and create:
            with self._lock:
                context = self._contexts.setdefault(context_id, _ScopeContext())
        return context

    def get(self, name: str, object_factory: Callable[[], Any]) -> Any:
        context = self._current(create=True)
        if name in context.instances:
            return context.instances[name]
        with context.lock:
            if name not in context.instances:
                context.instances[name] = object_factory()
            return context.instances[name]

    def remove(self, name: str) -> Optional[Any]:
        context = self._current(create=False)
        if context is None:
            return None
        with context.lock:
            context.callbacks.pop(name, None)
            return context.instances.pop(name, None)

    def register_destruction_callback(self, name: str, callback: Callable[[], None]) -> None:
        context = self._current(create=True)
        with context.lock:
            context.callbacks[name] = callback

    @contextmanager
    def activate(self, context_id: Hashable, end_on_exit: bool = True) -> Iterator['KeyedScope']:
        """Make ``context_id`` the active context for the duration of the block.

        Args:
            context_id: Identifier of the context (e.g. a request id)
            end_on_exit: Call end_context() when the block exits
        """
        token = self._active.set(context_id)
        try:
            yield self
        finally:
            self._active.reset(token)
            if end_on_exit:
                self.end_context(context_id)

    def end_context(self, context_id: Hashable) -> None:
        """Drop every instance of ``context_id`` and run their destruction callbacks.

        Callbacks run in reverse creation order. A failing callback is
        logged and the remaining callbacks still run. Unknown ids are ignored.
        """
        with self._lock:
            context = self._contexts.pop(context_id, None)
        if context is None:
            return
        with context.lock:
            callbacks = list(context.callbacks.items())
            context.callbacks.clear()
            context.instances.clear()
        for name, callback in reversed(callbacks):
            try:
                callback()
            except Exception:
                logger.warning(
                    f"Destruction callback for '{name}' in scope "
                    f"'{self.name}' ({context_id}) failed",
                    exc_info=True,
                )

    @property
    def context_ids(self) -> List[Hashable]:
        return list(self._contexts)

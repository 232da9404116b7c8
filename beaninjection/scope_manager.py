"""
ScopeManager

Decides, per scope kind, whether a bean instance is reused or created.

- Singleton: one instance per canonical name, cached after creation.
  Creation is serialized by a reentrant lock held for the whole dependency
  subtree, so a second thread asking for a singleton that is being built
  waits and then receives the cached instance. Cached reads take no lock.
- Prototype: a new instance per request, never cached.
- Custom: storage delegated to a registered Scope strategy.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Set

from .definition import BeanDefinition
from .exceptions import CircularReferenceError, DuplicateDefinitionError, ScopeNotActiveError
from .lifecycle import BeanLifeCycle
from .resolution_context import current_path, is_resolving
from .scope import Scope

logger = logging.getLogger(__name__)

_MISSING = object()


class ScopeManager:
    """Singleton cache, in-creation markers and custom scope registry.

    Attributes:
        _singletons: Fully initialized singletons by canonical name
        _early_references: Raw singletons exposed while still in creation
        _early_used: Names whose early reference was handed to another bean
        _in_creation: Singleton names currently being created
        _creation_order: Container-created singletons, oldest first
        _scopes: Custom scopes by name
    """

    def __init__(self):
        self._singletons: Dict[str, Any] = {}
        self._early_references: Dict[str, Any] = {}
        self._early_used: Set[str] = set()
        self._in_creation: Set[str] = set()
        self._creation_order: List[str] = []
        self._creation_lock = threading.RLock()
        self._scopes: Dict[str, Scope] = {}

    # Custom scopes

    def register_scope(self, name: str, scope: Scope) -> None:
        if name in (BeanLifeCycle.SINGLETON.value, BeanLifeCycle.PROTOTYPE.value):
            raise ValueError(f"Cannot replace built-in scope '{name}'")
        self._scopes[name] = scope

    def get_scope(self, name: str) -> Scope:
        scope = self._scopes.get(name)
        if scope is None:
            raise ScopeNotActiveError(f"No scope registered for scope name '{name}'")
        return scope

    @property
    def scope_names(self) -> List[str]:
        return list(self._scopes)

    # Resolution

    def get_or_create(self, name: str, definition: BeanDefinition,
                      factory: Callable[[], Any]) -> Any:
        """Return the instance for ``name`` according to its definition's scope.

        Raises:
            CircularReferenceError: When ``name`` is requested again while
                being created and no early reference is available
        """
        scope = definition.resolved_scope
        if scope == BeanLifeCycle.SINGLETON:
            return self.get_or_create_singleton(name, factory)

        if is_resolving(name):
            raise CircularReferenceError(name, current_path())
        if scope == BeanLifeCycle.PROTOTYPE:
            return factory()
        return self.get_scope(scope).get(name, factory)

    def get_or_create_singleton(self, name: str, factory: Callable[[], Any]) -> Any:
        instance = self._singletons.get(name, _MISSING)
        if instance is not _MISSING:
            return instance

        with self._creation_lock:
            instance = self._singletons.get(name, _MISSING)
            if instance is not _MISSING:
                return instance

            if name in self._in_creation:
                early = self._early_references.get(name, _MISSING)
                if early is _MISSING:
                    raise CircularReferenceError(name, current_path())
                logger.debug(f"Returning early reference to singleton '{name}'")
                self._early_used.add(name)
                return early

            self._in_creation.add(name)
            try:
                instance = factory()
                early = self._early_references.get(name, _MISSING)
                if name in self._early_used and instance is not early:
                    raise CircularReferenceError(
                        name,
                        current_path(),
                        message=(
                            f"Bean '{name}' has been injected into other beans in its raw "
                            f"version as part of a circular reference, but has eventually "
                            f"been replaced during initialization"
                        ),
                    )
            finally:
                self._in_creation.discard(name)
                self._early_references.pop(name, None)
                self._early_used.discard(name)

            self._singletons[name] = instance
            self._creation_order.append(name)
            logger.debug(f"Cached singleton '{name}'")
            return instance

    def expose_early_reference(self, name: str, instance: Any) -> None:
        """Make a raw singleton available to beans that reference it while it is still in creation."""
        with self._creation_lock:
            if name in self._in_creation:
                self._early_references[name] = instance

    def is_in_creation(self, name: str) -> bool:
        return name in self._in_creation

    @property
    def creation_lock(self):
        """The lock serializing singleton creation; held while a singleton and its dependencies are built."""
        return self._creation_lock

    # Singleton cache

    def get_singleton(self, name: str, default: Any = None) -> Any:
        return self._singletons.get(name, default)

    def contains_singleton(self, name: str) -> bool:
        return name in self._singletons

    def register_singleton(self, name: str, instance: Any) -> None:
        """Cache an externally created singleton.

        The container does not own such instances and does not destroy them.
        """
        with self._creation_lock:
            if name in self._singletons:
                raise DuplicateDefinitionError(
                    f"Could not register object under bean name '{name}': "
                    f"there is already {self._singletons[name]!r} bound"
                )
            self._singletons[name] = instance

    def remove_singleton(self, name: str) -> Optional[Any]:
        with self._creation_lock:
            if name in self._creation_order:
                self._creation_order.remove(name)
            return self._singletons.pop(name, None)

    @property
    def singleton_names(self) -> List[str]:
        return list(self._singletons)

    @property
    def creation_order(self) -> List[str]:
        return list(self._creation_order)

    def destroy_singletons(self, destroy: Callable[[str, Any], None]) -> None:
        """Empty the cache and call ``destroy`` for container-created singletons, newest first."""
        with self._creation_lock:
            owned = [(name, self._singletons[name]) for name in reversed(self._creation_order)]
            self._singletons.clear()
            self._creation_order.clear()

        logger.info(f"Destroying {len(owned)} singletons")
        for name, instance in owned:
            destroy(name, instance)

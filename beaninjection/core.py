"""
BeanInjectionCore

This module provides the application container: a BeanFactory loaded from
modules and started in one step.

Starting a container:
1. Loads the modules' definitions and aliases
2. Registers a KeyedScope for every custom scope the modules use and no
   one registered beforehand
3. Registers the BeanPostProcessor beans found among the definitions
4. Seals the registry
5. Creates every non-lazy singleton

If starting fails, the singletons created so far are destroyed before the
error propagates.

Example::

    with BeanInjectionCore(modules=[module]) as app:
        service = app.get[MyService]()

        with app.create_scope("request", "req-1"):
            ctx = app.get[RequestContext]()
    # close() destroys the singletons in reverse creation order
"""

import logging
import time
from typing import Any, Dict, Hashable, List, Optional, Type, TypeVar, Union

from .bean_factory import BeanFactory
from .config import BeanFactoryConfig
from .exceptions import ContainerClosedError
from .interfaces import AutowireCapableBeanResolver, BeanResolver
from .module import BeanInjectionModule
from .post_processor import BeanPostProcessor
from .scope import KeyedScope, Scope

logger = logging.getLogger(__name__)

T = TypeVar('T')


class BeanInjectionCore:
    """Application container built from BeanInjectionModules.

    Attributes:
        _factory: The BeanFactory holding the definitions and instances
        _parent: Parent container as passed in
        _startup_date: Epoch seconds at which starting began
        _closed: Flag indicating if the container has been closed

    Example::

        app = BeanInjectionCore(modules=[module])
        service = app.get[MyService]()
        app.close()

        # Multiple isolated containers can be used simultaneously
        app1 = BeanInjectionCore(modules=[module1])
        app2 = BeanInjectionCore(modules=[module2])
    """

    def __init__(
        self,
        modules: Optional[List[BeanInjectionModule]] = None,
        config: Optional[BeanFactoryConfig] = None,
        environment: Any = None,
        resource_loader: Any = None,
        event_publisher: Any = None,
        scopes: Optional[Dict[str, Scope]] = None,
        parent: Optional[Union['BeanInjectionCore', BeanResolver]] = None,
        container_id: Optional[str] = None,
        application_name: str = "",
        display_name: Optional[str] = None,
    ):
        """Create and start a container.

        Args:
            modules: DI modules to load
            config: Container policy
            environment: Collaborator for EnvironmentAware beans
            resource_loader: Collaborator for ResourceLoaderAware beans
            event_publisher: Collaborator for EventPublisherAware beans
            scopes: Custom scope implementations by name; scope names used
                by the modules and missing here get a KeyedScope
            parent: Container consulted for beans not defined here
            container_id: Unique id, defaults to the class name and object identity
            application_name: Name of the application the container belongs to
            display_name: Friendly name, defaults to the id

        Raises:
            BeanInjectionError: When a definition is invalid or a non-lazy
                singleton cannot be created
        """
        self._id = container_id or f"{type(self).__name__}@{id(self):x}"
        self._application_name = application_name
        self._display_name = display_name or self._id
        self._parent = parent
        self._startup_date = time.time()
        self._factory = BeanFactory(
            config=config,
            parent=parent.bean_factory if isinstance(parent, BeanInjectionCore) else parent,
            environment=environment,
            resource_loader=resource_loader,
            event_publisher=event_publisher,
        )
        self._closed = False

        for name, scope in (scopes or {}).items():
            self._factory.register_scope(name, scope)
        for module in modules or []:
            self._load_module(module)

        self._register_post_processors()
        self._factory.freeze_configuration()
        try:
            self._factory.preinstantiate_singletons()
        except Exception:
            logger.warning("Container startup failed, destroying singletons created so far")
            self._factory.destroy_singletons()
            self._closed = True
            raise
        logger.info(
            f"Started {self._display_name} with "
            f"{len(self._factory.get_bean_definition_names())} bean definitions"
        )

    def _load_module(self, module: BeanInjectionModule) -> None:
        registered = self._factory.registered_scope_names
        for scope_name in module.scope_names:
            if scope_name not in registered:
                self._factory.register_scope(scope_name, KeyedScope(scope_name))
        module.load_into(self._factory)

    def _register_post_processors(self) -> None:
        for name in self._factory.get_bean_names_for_type(BeanPostProcessor, allow_eager_init=False):
            logger.debug(f"Registering bean post-processor '{name}'")
            self._factory.add_bean_post_processor(self._factory.get_bean(name))

    @property
    def id(self) -> str:
        return self._id

    @property
    def application_name(self) -> str:
        return self._application_name

    @property
    def display_name(self) -> str:
        return self._display_name

    @property
    def startup_date(self) -> float:
        """Time the container was started, in seconds since the epoch."""
        return self._startup_date

    @property
    def parent(self) -> Optional[Union['BeanInjectionCore', BeanResolver]]:
        """The parent container as passed in, or None for a root container."""
        return self._parent

    def _ensure_not_closed(self) -> None:
        if self._closed:
            raise ContainerClosedError("This container is already closed")

    @property
    def get(self) -> BeanFactory:
        """The underlying factory, which supports ``get[Type]()``.

        Raises:
            ContainerClosedError: When the container has been closed

        Example::

            service = app.get[MyService]()
        """
        self._ensure_not_closed()
        return self._factory

    @property
    def bean_factory(self) -> BeanFactory:
        self._ensure_not_closed()
        return self._factory

    @property
    def autowire_capable_bean_factory(self) -> AutowireCapableBeanResolver:
        """Factory for wiring objects the container does not manage.

        Raises:
            ContainerClosedError: When the container has been closed

        Example::

            view = app.autowire_capable_bean_factory.autowire_bean(ReportView())
        """
        self._ensure_not_closed()
        return self._factory

    def get_bean(self, name_or_type: Union[str, Type[T]], *args: Any, **kwargs: Any) -> Any:
        """Shortcut for ``bean_factory.get_bean(...)``."""
        self._ensure_not_closed()
        return self._factory.get_bean(name_or_type, *args, **kwargs)

    def create_scope(self, scope_name: str, context_id: Hashable):
        """Activate a context of a KeyedScope for the duration of a ``with`` block.

        Raises:
            ContainerClosedError: When the container has been closed
            ScopeNotActiveError: When no scope is registered under ``scope_name``
            TypeError: When the registered scope is not a KeyedScope

        Example::

            with app.create_scope("request", "req-1"):
                ctx = app.get[RequestContext]()
        """
        self._ensure_not_closed()
        scope = self._factory.get_registered_scope(scope_name)
        if not isinstance(scope, KeyedScope):
            raise TypeError(f"Scope '{scope_name}' does not support context activation")
        return scope.activate(context_id)

    def close(self) -> None:
        """Close the container.

        Ends the open contexts of keyed scopes, then destroys the singletons
        in reverse creation order. Idempotent.
        """
        if self._closed:
            return
        self._closed = True
        logger.info("Closing container")
        for scope_name in self._factory.registered_scope_names:
            scope = self._factory.get_registered_scope(scope_name)
            if isinstance(scope, KeyedScope):
                for context_id in scope.context_ids:
                    scope.end_context(context_id)
        self._factory.destroy_singletons()

    @property
    def is_closed(self) -> bool:
        return self._closed

    def __enter__(self) -> 'BeanInjectionCore':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

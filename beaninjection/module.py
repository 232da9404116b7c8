"""
BeanInjectionModule

This module provides the definition DSL. A BeanInjectionModule collects
bean definitions and aliases, which are then loaded into a
BeanInjectionCore (or directly into a BeanFactory).

Key features:
- Subscript syntax: module.single[Type](), module.prototype[Type]()
- Custom scopes: ``with module.scope("request"): module.scoped[Type]()``
- Raw definitions for everything the builders do not cover: module.define()
- Context manager support for cleaner definition blocks

Example::

    module = BeanInjectionModule()
    with module:
        module.single[Database](lambda: Database("sqlite://"), destroy_method="close")
        module.single[UserRepository]()          # autowired by type
        module.prototype[ReportBuilder](args=(Ref("database"), "pdf"))
        module.alias("userRepository", "users")

        with module.scope("request"):
            module.scoped[RequestContext]()

    app = BeanInjectionCore(modules=[module])
"""

from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .definition import BeanDefinition
from .definition_builder import PrototypeBuilder, SingletonBuilder
from .exceptions import BeanDefinitionError
from .lifecycle import normalize_scope
from .scope_definition_context import ScopeDefinitionContext

if TYPE_CHECKING:
    from .bean_factory import BeanFactory
    from .definition_builder import ScopedBuilder


class BeanInjectionModule:
    """Module collecting bean definitions.

    Attributes:
        single: Builder for singleton registrations
        prototype: Builder for prototype registrations
        lazy: Default lazy flag for the module's singletons
        _definitions: Registered definitions, in declaration order
        _aliases: (name, alias) pairs, in declaration order

    Example::

        module = BeanInjectionModule(lazy=True)
        with module:
            # Singleton - same instance every time, created on first use
            module.single[Database]()

            # Prototype - new instance every time
            module.prototype[Command]()

            # Scoped - shared within the same scope context
            with module.scope("request"):
                module.scoped[RequestContext]()
    """

    def __init__(self, lazy: bool = False):
        """Initialize a new module with empty definitions.

        Args:
            lazy: If True, the module's singletons are created on first
                use instead of when the container starts. Definitions can
                override it with ``lazy=``.
        """
        self.lazy = lazy
        self._definitions: List[BeanDefinition] = []
        self._aliases: List[Tuple[str, str]] = []
        # Ordered set of the custom scope names used by this module
        self._scope_names: Dict[str, None] = {}
        self.single = SingletonBuilder(self)
        self.prototype = PrototypeBuilder(self)
        self._current_scoped_builder: Optional['ScopedBuilder'] = None

    def __enter__(self) -> 'BeanInjectionModule':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        return False

    @property
    def definitions(self) -> List[BeanDefinition]:
        return list(self._definitions)

    @property
    def aliases(self) -> List[Tuple[str, str]]:
        return list(self._aliases)

    @property
    def scope_names(self) -> List[str]:
        """Custom scope names used in ``module.scope(...)`` blocks."""
        return list(self._scope_names)

    def scope(self, scope_name: str) -> ScopeDefinitionContext:
        """Open a block whose ``scoped[Type]`` registrations live in ``scope_name``.

        Example::

            with module.scope("request"):
                module.scoped[RequestContext]()
        """
        return ScopeDefinitionContext(self, scope_name)

    @property
    def scoped(self) -> 'ScopedBuilder':
        """Get the scoped builder of the enclosing ``module.scope()`` block.

        Raises:
            BeanDefinitionError: When called outside a scope block
        """
        if self._current_scoped_builder is None:
            raise BeanDefinitionError(
                "scoped[] must be used within a scope block. "
                "Use 'with module.scope(\"name\"):' first."
            )
        return self._current_scoped_builder

    def define(self, definition: BeanDefinition) -> BeanDefinition:
        """Add a raw definition to the module.

        Note:
            Duplicate names are not checked here; the registry rejects them
            when the module is loaded.
        """
        if definition.scope is not None:
            scope = normalize_scope(definition.scope)
            if isinstance(scope, str):
                self._scope_names.setdefault(scope, None)
        self._definitions.append(definition)
        return definition

    def alias(self, name: str, alias: str) -> None:
        """Declare ``alias`` as another name for the bean ``name``."""
        self._aliases.append((name, alias))

    def load_into(self, bean_factory: 'BeanFactory') -> None:
        """Register the module's definitions, then its aliases."""
        for definition in self._definitions:
            bean_factory.register_definition(definition)
        for name, alias in self._aliases:
            bean_factory.register_alias(name, alias)

    def __repr__(self) -> str:
        return f"BeanInjectionModule(definitions={len(self._definitions)})"

"""
ScopeDefinitionContext

Context manager for defining scoped beans within a module.
"""

from typing import TYPE_CHECKING, Optional

from .definition_builder import ScopedBuilder

if TYPE_CHECKING:
    from .module import BeanInjectionModule


class ScopeDefinitionContext:
    """Context manager for defining beans that belong to a custom scope.

    Used with the `with module.scope(...)` syntax. Contexts nest; the
    innermost one wins.

    Example::

        with module.scope("request"):
            module.scoped[RequestContext]()
    """

    def __init__(self, module: 'BeanInjectionModule', scope_name: str):
        """Initialize the scope definition context.

        Args:
            module: The BeanInjectionModule this context belongs to
            scope_name: Name of the custom scope
        """
        self.module = module
        self.scope_name = scope_name
        self._previous_scoped_builder: Optional[ScopedBuilder] = None

    def __enter__(self) -> 'ScopeDefinitionContext':
        self._previous_scoped_builder = self.module._current_scoped_builder
        self.module._current_scoped_builder = ScopedBuilder(self.module, self.scope_name)
        self.module._scope_names.setdefault(self.scope_name, None)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.module._current_scoped_builder = self._previous_scoped_builder
        return False

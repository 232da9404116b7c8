"""
DependencyResolver

Builds the raw instance of a bean from its merged definition:

1. Resolve constructor arguments. ``Ref`` values are looked up through the
   BeanFactory, which recurses into full bean resolution; anything else is
   passed through as a literal. Autowired definitions without declared
   arguments get one argument per annotated ``__init__`` parameter.
2. Call the constructor (``bean_type``) or the ``factory`` callable.
3. Expose the raw instance as an early reference (singletons only), so
   that property-level cycles can resolve.
4. Resolve property values the same way and apply them with ``setattr``.

Constructor-level cycles cannot resolve: the bean has no instance to
expose yet, and the ScopeManager raises CircularReferenceError.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence, Tuple

from .config import BeanFactoryConfig
from .definition import BeanDefinition, Ref
from .exceptions import AmbiguousBeanError, BeanCreationError, BeanInjectionError, NoSuchBeanError
from .resolution_context import current_path
from .scope_manager import ScopeManager
from .type_inference import constructor_parameters

if TYPE_CHECKING:
    from .bean_factory import BeanFactory

logger = logging.getLogger(__name__)


class DependencyResolver:
    """Creates raw bean instances with their dependencies injected.

    Attributes:
        _bean_factory: Facade used for every dependency lookup
        _scope_manager: Receives early references of singletons
        _config: Container policy (circular reference handling)
    """

    def __init__(self, bean_factory: 'BeanFactory', scope_manager: ScopeManager,
                 config: BeanFactoryConfig):
        self._bean_factory = bean_factory
        self._scope_manager = scope_manager
        self._config = config

    def resolve(self, name: str, definition: BeanDefinition,
                explicit_args: Optional[Sequence[Any]] = None) -> Any:
        """Instantiate ``definition`` and populate its properties.

        Args:
            name: Canonical bean name
            definition: Merged definition
            explicit_args: Positional arguments replacing the declared
                constructor arguments

        Returns:
            The raw, not yet initialized instance

        Raises:
            BeanCreationError: When the constructor or a setter fails
            CircularReferenceError: When a constructor dependency is
                already being created
        """
        bean_class = self._bean_factory.resolve_bean_class(definition)
        constructor = definition.factory or bean_class

        if explicit_args is not None:
            args, kwargs = tuple(explicit_args), {}
        else:
            args, kwargs = self._constructor_arguments(name, definition, constructor)

        try:
            instance = constructor(*args, **kwargs)
        except BeanInjectionError:
            raise
        except Exception as e:
            raise BeanCreationError(
                name, f"Instantiation of bean failed: {e}", current_path()
            ) from e

        if instance is None:
            raise BeanCreationError(name, "Factory returned None", current_path())

        if definition.is_singleton and self._config.allow_circular_references:
            self._scope_manager.expose_early_reference(name, instance)

        self._populate_properties(name, definition, instance)
        return instance

    def _constructor_arguments(self, name: str, definition: BeanDefinition,
                               constructor: Any) -> Tuple[Tuple[Any, ...], Dict[str, Any]]:
        if definition.args or definition.kwargs or not definition.autowire:
            args = tuple(self.resolve_value(value) for value in definition.args)
            kwargs = {key: self.resolve_value(value) for key, value in definition.kwargs.items()}
            return args, kwargs

        kwargs = {}
        for parameter in constructor_parameters(constructor):
            candidates = self._bean_factory.get_bean_names_for_type(parameter.type)
            if not candidates:
                if parameter.has_default:
                    continue
                if parameter.optional:
                    kwargs[parameter.name] = None
                    continue
            logger.debug(f"Autowiring parameter '{parameter.name}' of bean '{name}' by type")
            kwargs[parameter.name] = self._bean_factory.get_bean(parameter.type)
        return (), kwargs

    def _populate_properties(self, name: str, definition: BeanDefinition, instance: Any) -> None:
        for property_name, value in definition.properties.items():
            resolved = self.resolve_value(value)
            try:
                setattr(instance, property_name, resolved)
            except Exception as e:
                raise BeanCreationError(
                    name, f"Error setting property '{property_name}': {e}", current_path()
                ) from e

    def resolve_value(self, value: Any) -> Any:
        """Turn a declared argument or property value into the value to inject.

        Lists, tuples and dicts are resolved element by element.
        """
        if isinstance(value, Ref):
            return self._resolve_reference(value)
        if isinstance(value, list):
            return [self.resolve_value(item) for item in value]
        if isinstance(value, tuple):
            return tuple(self.resolve_value(item) for item in value)
        if isinstance(value, dict):
            return {key: self.resolve_value(item) for key, item in value.items()}
        return value

    def _resolve_reference(self, ref: Ref) -> Any:
        if ref.provider:
            return self._bean_factory.get_bean_provider(ref.target)
        if not ref.optional:
            return self._bean_factory.get_bean(ref.target)
        if isinstance(ref.target, str) and not self._bean_factory.contains_bean(ref.target):
            return None
        try:
            return self._bean_factory.get_bean(ref.target)
        except AmbiguousBeanError:
            raise
        except NoSuchBeanError:
            return None


"""
Capability Interfaces

Small abstract interfaces the BeanFactory composes, instead of one deep
hierarchy:

- BeanResolver: the core lookup capability
- ListableBeanResolver: enumeration of beans by type
- HierarchicalBeanResolver: delegation to a parent container
- AutowireCapableBeanResolver: wiring objects the container does not manage
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type, TypeVar, Union

from .lifecycle import LookupMode

if TYPE_CHECKING:
    from .provider import BeanProvider

T = TypeVar('T')


class BeanResolver(ABC):
    """Resolve a bean name or type to an instance."""

    @abstractmethod
    def get_bean(self, name_or_type: Union[str, Type[T]], *args: Any,
                 required_type: Optional[Type[T]] = None,
                 mode: LookupMode = LookupMode.BY_NAME) -> Any:
        """Return the bean registered under a name, or the single bean of a type.

        Raises:
            NoSuchBeanError: When nothing matches
            AmbiguousBeanError: When a type matches several beans and none is primary
            BeanCreationError: When creating the bean fails
        """
        pass

    @abstractmethod
    def get_bean_provider(self, required_type: Type[T]) -> 'BeanProvider[T]':
        """Return a handle that resolves beans of ``required_type`` on demand."""
        pass

    @abstractmethod
    def contains_bean(self, name: str) -> bool:
        pass

    @abstractmethod
    def is_singleton(self, name: str) -> bool:
        pass

    @abstractmethod
    def is_prototype(self, name: str) -> bool:
        pass

    @abstractmethod
    def is_type_match(self, name: str, type_to_match: Type,
                      mode: LookupMode = LookupMode.BY_NAME) -> bool:
        pass

    @abstractmethod
    def get_type(self, name: str, allow_factory_bean_init: bool = True,
                 mode: LookupMode = LookupMode.BY_NAME) -> Optional[Type]:
        """Return the type ``get_bean(name)`` would produce, or None if it
        cannot be determined without creating a FactoryBean."""
        pass

    @abstractmethod
    def get_aliases(self, name: str) -> List[str]:
        pass


class ListableBeanResolver(ABC):
    """Enumerate beans instead of looking them up one by one."""

    @abstractmethod
    def get_bean_names_for_type(self, required_type: Type,
                                allow_eager_init: bool = True) -> List[str]:
        pass

    @abstractmethod
    def get_beans_of_type(self, required_type: Type[T]) -> Dict[str, T]:
        pass

    @abstractmethod
    def get_bean_definition_names(self) -> List[str]:
        pass


class HierarchicalBeanResolver(ABC):
    """Fall back to a parent container for names and types not found locally."""

    @property
    @abstractmethod
    def parent_bean_factory(self) -> Optional[BeanResolver]:
        pass

    @abstractmethod
    def contains_local_bean(self, name: str) -> bool:
        pass


class AutowireCapableBeanResolver(ABC):
    """Apply injection and lifecycle callbacks to objects outside the registry.

    Such objects are never cached or registered; the caller owns them.
    """

    @abstractmethod
    def create_bean(self, bean_class: Type[T], name: Optional[str] = None) -> T:
        """Instantiate ``bean_class`` with autowired constructor arguments and
        run the full initialization sequence."""
        pass

    @abstractmethod
    def autowire_bean(self, existing: T) -> T:
        """Inject beans into the annotated attributes of ``existing``."""
        pass

    @abstractmethod
    def initialize_bean(self, existing: T, name: Optional[str] = None) -> T:
        """Run awareness callbacks, post-processors and init callbacks on ``existing``."""
        pass

    @abstractmethod
    def destroy_bean(self, existing: Any) -> None:
        pass

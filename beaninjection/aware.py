"""
Bean Callback Interfaces

Base classes a bean can implement to take part in its own lifecycle:

- Awareness: receive container collaborators before initialization
- InitializingBean / DisposableBean: init and destroy callbacks
- FactoryBean: a bean that produces another object
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional, Type

if TYPE_CHECKING:
    from .bean_factory import BeanFactory
    from .type_loader import TypeLoader


class BeanNameAware(ABC):
    """Receives the canonical name the bean is registered under."""

    @abstractmethod
    def set_bean_name(self, name: str) -> None:
        pass


class TypeLoaderAware(ABC):
    """Receives the TypeLoader the container resolves dotted type paths with."""

    @abstractmethod
    def set_type_loader(self, type_loader: 'TypeLoader') -> None:
        pass


class BeanFactoryAware(ABC):
    """Receives the owning BeanFactory."""

    @abstractmethod
    def set_bean_factory(self, bean_factory: 'BeanFactory') -> None:
        pass


class EnvironmentAware(ABC):
    """Receives the environment collaborator supplied to the container."""

    @abstractmethod
    def set_environment(self, environment: Any) -> None:
        pass


class ResourceLoaderAware(ABC):
    """Receives the resource loader collaborator supplied to the container."""

    @abstractmethod
    def set_resource_loader(self, resource_loader: Any) -> None:
        pass


class EventPublisherAware(ABC):
    """Receives the event publisher collaborator supplied to the container."""

    @abstractmethod
    def set_event_publisher(self, event_publisher: Any) -> None:
        pass


class InitializingBean(ABC):
    """Called once properties are set, before the declared init method."""

    @abstractmethod
    def after_properties_set(self) -> None:
        pass


class DisposableBean(ABC):
    """Called at destruction, before the declared destroy method."""

    @abstractmethod
    def destroy(self) -> None:
        pass


class FactoryBean(ABC):
    """A bean that is itself a factory for the object exposed under its name.

    ``factory.get_bean("connection")`` returns ``get_object()``;
    ``factory.get_bean("connection", mode=LookupMode.BY_NAME_UNWRAP_FACTORY)``
    returns the FactoryBean.

    Example::

        class ConnectionFactoryBean(FactoryBean):
            def __init__(self, url: str):
                self.url = url

            def get_object(self):
                return connect(self.url)

            @property
            def object_type(self):
                return Connection
    """

    @abstractmethod
    def get_object(self) -> Any:
        pass

    @property
    def object_type(self) -> Optional[Type]:
        """Type of the product, or None if unknown before creating it."""
        return None

    @property
    def is_singleton(self) -> bool:
        """Whether get_object() is called once and its product cached."""
        return True

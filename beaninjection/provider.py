"""
BeanProvider

Deferred, typed access to beans.

A provider is created without resolving anything. Beans are looked up
only when the provider is consumed, which also makes providers a way to
depend on a bean that is created later than the dependent one.

Example::

    provider = factory.get_bean_provider(Plugin)

    plugin = provider.get_if_unique()  # None if zero or several
    for plugin in provider:            # every Plugin bean, registration order
        plugin.start()
"""

from typing import TYPE_CHECKING, Any, Generic, Iterator, List, Optional, Type, TypeVar

from .exceptions import AmbiguousBeanError, NoSuchBeanError

if TYPE_CHECKING:
    from .bean_factory import BeanFactory

T = TypeVar('T')


class BeanProvider(Generic[T]):
    """Lazy handle on the beans of one type.

    Attributes:
        required_type: The type looked up
    """

    def __init__(self, bean_factory: 'BeanFactory', required_type: Type[T]):
        self._bean_factory = bean_factory
        self.required_type = required_type

    def get(self, *args: Any) -> T:
        """Return the single matching bean.

        Raises:
            NoSuchBeanError: When nothing matches
            AmbiguousBeanError: When several beans match and none is primary
        """
        return self._bean_factory.get_bean(self.required_type, *args)

    def __call__(self, *args: Any) -> T:
        return self.get(*args)

    def get_if_available(self) -> Optional[T]:
        """Return the matching bean, or None if there is none.

        Raises:
            AmbiguousBeanError: When several beans match and none is primary
        """
        try:
            return self.get()
        except AmbiguousBeanError:
            raise
        except NoSuchBeanError:
            return None

    def get_if_unique(self) -> Optional[T]:
        """Return the matching bean, or None if there is none or no unique one."""
        try:
            return self.get()
        except NoSuchBeanError:
            return None

    @property
    def names(self) -> List[str]:
        """Names of the matching beans, without creating any of them."""
        return self._bean_factory.get_bean_names_for_type(
            self.required_type, allow_eager_init=False
        )

    def __iter__(self) -> Iterator[T]:
        for name in self.names:
            yield self._bean_factory.get_bean(name)

    def __len__(self) -> int:
        return len(self.names)

    def __repr__(self) -> str:
        return f"BeanProvider({getattr(self.required_type, '__name__', self.required_type)})"

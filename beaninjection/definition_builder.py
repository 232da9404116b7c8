"""
DefinitionBuilder

This module provides the builders behind the subscript syntax of
BeanInjectionModule (e.g., single[Type], prototype[Type], scoped[Type]).

A builder turns one call into a BeanDefinition:
- The subscripted type becomes ``bean_type``
- The bean name defaults to the type name with a lower case first letter
- The builder supplies the scope; the module supplies the lazy default

Example::

    module.single[Database]()                          # "database", autowired
    module.single[Cache](lambda: RedisCache("redis://localhost"))
    module.prototype[Report](name="dailyReport", args=(Ref("database"),))
"""

from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Sequence, Type, TypeVar, Union

from .definition import BeanDefinition
from .lifecycle import BeanLifeCycle, ScopeName

if TYPE_CHECKING:
    from .module import BeanInjectionModule

T = TypeVar('T')


def default_bean_name(bean_type: Union[Type, str]) -> str:
    """Derive a bean name from a type or dotted type path.

    Example::

        >>> default_bean_name(UserRepository)
        'userRepository'
        >>> default_bean_name('myapp.services.MailService')
        'mailService'
    """
    if isinstance(bean_type, str):
        simple_name = bean_type.rsplit('.', 1)[-1]
    else:
        simple_name = getattr(bean_type, '__name__', None) or str(bean_type)
    return simple_name[:1].lower() + simple_name[1:]


class DefinitionBuilder:
    """Base class for definition builders supporting type parameters.

    Attributes:
        module: The BeanInjectionModule to register definitions to
        scope: Scope of the created definitions

    Note:
        This class is not used directly. Use module.single, module.prototype
        or module.scoped instead.
    """

    def __init__(self, module: 'BeanInjectionModule', scope: ScopeName):
        self.module = module
        self.scope = scope

    def __getitem__(self, bean_type: Union[Type[T], str]) -> Callable[..., BeanDefinition]:
        """Enable subscript syntax: builder[Type](...).

        Args:
            bean_type: The type to register, or its dotted import path

        Returns:
            A registration function; it accepts an optional factory callable
            plus the BeanDefinition fields as keywords, and returns the
            registered definition

        Example::

            # This syntax:
            module.single[Database](lambda: Database("sqlite://"), destroy_method="close")

            # Is equivalent to:
            register = module.single[Database]
            register(lambda: Database("sqlite://"), destroy_method="close")
        """

        def register(
            factory: Optional[Callable[..., T]] = None,
            *,
            name: Optional[str] = None,
            args: Optional[Sequence[Any]] = None,
            kwargs: Optional[Dict[str, Any]] = None,
            properties: Optional[Dict[str, Any]] = None,
            autowire: Optional[bool] = None,
            init_method: Optional[str] = None,
            destroy_method: Optional[str] = None,
            depends_on: Optional[Sequence[str]] = None,
            primary: bool = False,
            lazy: Optional[bool] = None,
            parent: Optional[str] = None,
            aliases: Sequence[str] = (),
        ) -> BeanDefinition:
            bean_name = name or default_bean_name(bean_type)
            if autowire is None and args is None and kwargs is None:
                autowire = True

            definition = BeanDefinition(
                name=bean_name,
                bean_type=bean_type,
                factory=factory,
                scope=self.scope,
                lazy=self._effective_lazy(lazy),
                args=tuple(args) if args is not None else None,
                kwargs=dict(kwargs) if kwargs is not None else None,
                properties=dict(properties) if properties is not None else None,
                autowire=autowire,
                init_method=init_method,
                destroy_method=destroy_method,
                depends_on=tuple(depends_on) if depends_on is not None else None,
                primary=primary,
                parent=parent,
            )
            self.module.define(definition)
            for alias in aliases:
                self.module.alias(bean_name, alias)
            return definition

        return register

    def _effective_lazy(self, lazy: Optional[bool]) -> Optional[bool]:
        # Definition level wins, then the module default
        if lazy is not None:
            return lazy
        return True if self.module.lazy else None


class SingletonBuilder(DefinitionBuilder):
    """Builder for singleton definitions"""

    def __init__(self, module: 'BeanInjectionModule'):
        super().__init__(module, BeanLifeCycle.SINGLETON)


class PrototypeBuilder(DefinitionBuilder):
    """Builder for prototype definitions (new instance per lookup)"""

    def __init__(self, module: 'BeanInjectionModule'):
        super().__init__(module, BeanLifeCycle.PROTOTYPE)

    def _effective_lazy(self, lazy: Optional[bool]) -> Optional[bool]:
        return lazy


class ScopedBuilder(DefinitionBuilder):
    """Builder for definitions living in a custom scope.

    Only available inside ``with module.scope("name"):``.
    """

    def __init__(self, module: 'BeanInjectionModule', scope_name: str):
        super().__init__(module, scope_name)

    def _effective_lazy(self, lazy: Optional[bool]) -> Optional[bool]:
        return lazy

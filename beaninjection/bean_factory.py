"""
BeanFactory

This module provides the container facade: the only entry point through
which beans are looked up, with registration methods for definition
sources. It is the heart of the BeanInjection package, composing:

- DefinitionRegistry: names, aliases and merged definitions
- ScopeManager: singleton cache, in-creation markers, custom scopes
- DependencyResolver: construction and property injection
- LifecycleOrchestrator: awareness, post-processors, init/destroy methods

A lookup resolves the alias, asks the ScopeManager for a cached instance
and otherwise creates one: dependencies first (recursing into this
facade), then the raw instance, then the lifecycle callbacks. The result
is cached according to the bean's scope.

Example::

    factory = BeanFactory()
    factory.register_definition(BeanDefinition("database", bean_type=Database))
    factory.register_definition(BeanDefinition(
        "userRepository", bean_type=UserRepository, args=(Ref("database"),)
    ))

    repo = factory.get_bean("userRepository")
    same = factory.get_bean(UserRepository)
    also_same = factory[UserRepository]()
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Type, TypeVar, Union

from .aware import FactoryBean
from .config import BeanFactoryConfig
from .definition import BeanDefinition, finalize
from .definition_builder import default_bean_name
from .dependency_resolver import DependencyResolver
from .exceptions import (
    AmbiguousBeanError,
    BeanCreationError,
    BeanDefinitionError,
    BeanInjectionError,
    BeanNotOfRequiredTypeError,
    CircularReferenceError,
    DuplicateDefinitionError,
    NoSuchBeanError,
)
from .interfaces import (
    AutowireCapableBeanResolver,
    BeanResolver,
    HierarchicalBeanResolver,
    ListableBeanResolver,
)
from .lifecycle import BeanLifeCycle, LookupMode
from .lifecycle_orchestrator import LifecycleOrchestrator
from .post_processor import BeanPostProcessor
from .provider import BeanProvider
from .registry import DefinitionRegistry
from .resolution_context import current_path, is_resolving, resolving
from .scope import Scope
from .scope_manager import ScopeManager
from .type_inference import declared_return_type, injectable_attributes
from .type_loader import TypeLoader

logger = logging.getLogger(__name__)

T = TypeVar('T')

_MISSING = object()


def _type_name(t: Any) -> str:
    return getattr(t, '__name__', str(t))


def _is_assignable(candidate: Any, required_type: Any) -> bool:
    try:
        return issubclass(candidate, required_type)
    except TypeError:
        # Generic aliases and other non-class annotations only match exactly
        return candidate == required_type


def _is_factory_bean_class(bean_class: Any) -> bool:
    return isinstance(bean_class, type) and issubclass(bean_class, FactoryBean)


@contextmanager
def _creation_of(name: str) -> Iterator[None]:
    """Put ``name`` on the resolution path and report failures as BeanCreationError.

    Cycles propagate unchanged, and so do BeanCreationErrors of dependencies,
    which already name the bean that failed.
    """
    with resolving(name):
        try:
            yield
        except (CircularReferenceError, BeanCreationError):
            raise
        except BeanInjectionError as e:
            raise BeanCreationError(name, str(e), current_path()) from e


class BeanFactory(BeanResolver, ListableBeanResolver, HierarchicalBeanResolver,
                  AutowireCapableBeanResolver):
    """IoC container facade.

    Attributes:
        config: Container policy
        type_loader: Resolves dotted ``bean_type`` paths
        environment: Collaborator handed to EnvironmentAware beans
        resource_loader: Collaborator handed to ResourceLoaderAware beans
        event_publisher: Collaborator handed to EventPublisherAware beans
    """

    def __init__(
        self,
        config: Optional[BeanFactoryConfig] = None,
        parent: Optional[BeanResolver] = None,
        environment: Any = None,
        resource_loader: Any = None,
        event_publisher: Any = None,
        type_loader: Optional[TypeLoader] = None,
    ):
        """Initialize an empty container.

        Args:
            config: Container policy, defaults to BeanFactoryConfig()
            parent: Container consulted for names and types not found here
            environment: Opaque collaborator for EnvironmentAware beans
            resource_loader: Opaque collaborator for ResourceLoaderAware beans
            event_publisher: Opaque collaborator for EventPublisherAware beans
            type_loader: Loader for dotted type paths
        """
        self.config = config or BeanFactoryConfig()
        self.environment = environment
        self.resource_loader = resource_loader
        self.event_publisher = event_publisher
        self.type_loader = type_loader or TypeLoader()
        self._parent = parent
        self._registry = DefinitionRegistry(self.config)
        self._scope_manager = ScopeManager()
        self._resolver = DependencyResolver(self, self._scope_manager, self.config)
        self._orchestrator = LifecycleOrchestrator(self)
        # Cached products of singleton FactoryBeans, guarded by the creation lock
        self._factory_products: Dict[str, Any] = {}

    # Registration

    def register_definition(self, definition: BeanDefinition, name: Optional[str] = None) -> None:
        """Register ``definition`` under ``name`` (defaults to ``definition.name``).

        Raises:
            DuplicateDefinitionError: When the name is taken and overriding is disabled
            RegistrySealedError: When the name is frozen or the registry sealed
        """
        self._registry.register(name or definition.name, definition)

    def remove_definition(self, name: str) -> None:
        """Unregister ``name``, then destroy its cached singleton if there is one.

        Raises:
            NoSuchBeanError: When ``name`` is not registered
            RegistrySealedError: When the registry is sealed; the cached
                singleton is left untouched
        """
        canonical = self._registry.resolve_alias(name)
        if not self._registry.contains(canonical):
            raise self._not_found(name)
        definition = self._registry.get_merged_definition(canonical)
        self._registry.remove(canonical)

        with self._scope_manager.creation_lock:
            self._factory_products.pop(canonical, None)
            owned = canonical in self._scope_manager.creation_order
            instance = self._scope_manager.remove_singleton(canonical)
        if owned and instance is not None:
            self._destroy_bean(canonical, instance, definition)

    def register_alias(self, name: str, alias: str) -> None:
        self._registry.register_alias(name, alias)

    def register_singleton(self, name: str, instance: Any) -> None:
        """Register an already constructed object as a singleton.

        The object gets no lifecycle callbacks and is not destroyed by the
        container.
        """
        if self._registry.contains(name) and not self.config.allow_definition_overriding:
            raise DuplicateDefinitionError(
                f"Could not register object under bean name '{name}': "
                f"a bean definition is already bound"
            )
        self._scope_manager.register_singleton(name, instance)

    def register_scope(self, name: str, scope: Scope) -> None:
        self._scope_manager.register_scope(name, scope)

    def get_registered_scope(self, name: str) -> Scope:
        return self._scope_manager.get_scope(name)

    @property
    def registered_scope_names(self) -> List[str]:
        return self._scope_manager.scope_names

    def add_bean_post_processor(self, post_processor: BeanPostProcessor) -> None:
        self._orchestrator.add_post_processor(post_processor)

    @property
    def bean_post_processors(self) -> List[BeanPostProcessor]:
        return self._orchestrator.post_processors

    def freeze_configuration(self) -> None:
        """Seal the registry: no further definitions or aliases."""
        self._registry.seal()

    @property
    def is_configuration_frozen(self) -> bool:
        return self._registry.is_sealed

    # Lookup

    def get_bean(self, name_or_type: Union[str, Type[T]], *args: Any,
                 required_type: Optional[Type[T]] = None,
                 mode: LookupMode = LookupMode.BY_NAME) -> Any:
        """Return a bean by name or by type.

        Args:
            name_or_type: Bean name or alias, or the type to look up
            *args: Explicit constructor arguments replacing the declared
                ones; only valid for prototypes and singletons not yet created
            required_type: Fail unless the bean is an instance of this type
            mode: BY_NAME_UNWRAP_FACTORY returns a FactoryBean itself
                instead of its product

        Raises:
            NoSuchBeanError: When nothing matches
            AmbiguousBeanError: When a type matches several beans, none primary
            BeanNotOfRequiredTypeError: When ``required_type`` does not match
            CircularReferenceError: When the bean depends on itself through
                its constructor, or through a prototype
            BeanCreationError: When creating the bean fails

        Example::

            service = factory.get_bean("userService")
            service = factory.get_bean(UserService)
            report = factory.get_bean("report", "2024-Q1")  # prototype with args
        """
        if isinstance(name_or_type, str):
            bean = self._get_by_name(name_or_type, args, mode)
        else:
            bean = self._get_by_type(name_or_type, args)

        if required_type is not None and not isinstance(bean, required_type):
            raise BeanNotOfRequiredTypeError(
                name_or_type if isinstance(name_or_type, str) else _type_name(name_or_type),
                required_type,
                type(bean),
            )
        return bean

    def __getitem__(self, interface: Type[T]) -> Callable[[], T]:
        """Support subscript syntax: factory[Type]().

        Example::

            # These are equivalent:
            service = factory[MyService]()
            service = factory.get_bean(MyService)
        """

        def getter() -> T:
            return self.get_bean(interface)

        return getter

    def get_bean_provider(self, required_type: Type[T]) -> BeanProvider[T]:
        return BeanProvider(self, required_type)

    def _get_by_name(self, name: str, args: Sequence[Any], mode: LookupMode) -> Any:
        canonical = self._registry.resolve_alias(name)

        if not self._registry.contains(canonical):
            instance = self._scope_manager.get_singleton(canonical, _MISSING)
            if instance is not _MISSING:
                if args:
                    raise self._explicit_args_error(canonical)
                return self._object_for_instance(instance, canonical, mode, None)
            if self._parent is not None:
                return self._parent.get_bean(name, *args, mode=mode)
            raise self._not_found(name)

        definition = self._registry.get_merged_definition(canonical)
        if definition.abstract:
            raise BeanDefinitionError(
                f"Bean definition '{canonical}' is abstract and can only be used as a parent"
            )
        if args and definition.is_singleton and self._scope_manager.contains_singleton(canonical):
            raise self._explicit_args_error(canonical)

        explicit_args = tuple(args) if args else None
        created = []

        def create() -> Any:
            created.append(canonical)
            return self._create_bean(canonical, definition, explicit_args)

        instance = self._scope_manager.get_or_create(canonical, definition, create)
        if explicit_args is not None and definition.is_singleton and not created:
            # Created by another thread meanwhile, or handed out as an early reference
            raise self._explicit_args_error(canonical)
        return self._object_for_instance(instance, canonical, mode, definition)

    def _get_by_type(self, required_type: Type[T], args: Sequence[Any]) -> T:
        candidates = self.get_bean_names_for_type(required_type)
        if not candidates:
            if self._parent is not None:
                return self._parent.get_bean(required_type, *args)
            registered = ", ".join(self._registry.names()) or "None"
            raise NoSuchBeanError(
                f"No qualifying bean of type '{_type_name(required_type)}' available.\n"
                f"Registered beans: {registered}\n"
                f"Hint: module.single[{_type_name(required_type)}]()",
                bean_type=required_type,
            )

        if len(candidates) > 1:
            primaries = [name for name in candidates if self._is_primary(name)]
            if len(primaries) != 1:
                raise AmbiguousBeanError(
                    f"No qualifying bean of type '{_type_name(required_type)}' available: "
                    f"expected single matching bean but found {len(candidates)}: "
                    f"{', '.join(candidates)}. "
                    f"Mark one of them as primary or look the bean up by name.",
                    bean_type=required_type,
                    candidates=candidates,
                )
            candidates = primaries

        return self._get_by_name(candidates[0], args, LookupMode.BY_NAME)

    def _is_primary(self, name: str) -> bool:
        return self._registry.contains(name) and self._registry.get_merged_definition(name).primary

    # Creation

    def _create_bean(self, name: str, definition: BeanDefinition,
                     explicit_args: Optional[Sequence[Any]]) -> Any:
        logger.debug(f"Creating instance of bean '{name}'")
        with _creation_of(name):
            for dependency in definition.depends_on:
                self.get_bean(dependency)
            raw = self._resolver.resolve(name, definition, explicit_args)
            bean = self._orchestrator.initialize(raw, name, definition)

        if (not definition.is_singleton and not definition.is_prototype
                and self._orchestrator.requires_destruction(bean, definition)):
            self._scope_manager.get_scope(definition.resolved_scope).register_destruction_callback(
                name, lambda: self._orchestrator.destroy(bean, name, definition)
            )
        return bean

    def resolve_bean_class(self, definition: BeanDefinition) -> Optional[Type]:
        """Return the definition's declared type, importing dotted paths."""
        if definition.bean_type is None:
            return None
        return self.type_loader.load(definition.bean_type)

    def _predict_bean_class(self, definition: BeanDefinition) -> Optional[Type]:
        if definition.bean_type is not None:
            return self.resolve_bean_class(definition)
        if definition.factory is not None:
            return declared_return_type(definition.factory)
        return None

    def _object_for_instance(self, instance: Any, name: str, mode: LookupMode,
                             definition: Optional[BeanDefinition]) -> Any:
        if mode is LookupMode.BY_NAME_UNWRAP_FACTORY:
            if not isinstance(instance, FactoryBean):
                raise BeanNotOfRequiredTypeError(name, FactoryBean, type(instance))
            return instance
        if not isinstance(instance, FactoryBean):
            return instance

        shared = (
            instance.is_singleton
            and (definition is None or definition.is_singleton)
            and self._scope_manager.contains_singleton(name)
        )
        if not shared:
            return self._make_product(instance, name)

        product = self._factory_products.get(name, _MISSING)
        if product is _MISSING:
            with self._scope_manager.creation_lock:
                product = self._factory_products.get(name, _MISSING)
                if product is _MISSING:
                    product = self._make_product(instance, name)
                    self._factory_products[name] = product
        return product

    def _make_product(self, factory_bean: FactoryBean, name: str) -> Any:
        try:
            product = factory_bean.get_object()
            return self._orchestrator.apply_after_init(product, name)
        except (CircularReferenceError, BeanCreationError):
            raise
        except Exception as e:
            raise BeanCreationError(
                name, f"FactoryBean threw exception on object creation: {e}", current_path()
            ) from e

    # Unmanaged objects

    def create_bean(self, bean_class: Type[T], name: Optional[str] = None) -> T:
        """Build an instance of a class that has no definition.

        The constructor is autowired, then the full initialization sequence
        runs. The result is neither cached nor destroyed by the container.

        Example::

            job = factory.create_bean(ReportJob)
        """
        name = name or default_bean_name(bean_class)
        definition = finalize(BeanDefinition(
            name, bean_type=bean_class, scope=BeanLifeCycle.PROTOTYPE, autowire=True
        ))
        logger.debug(f"Creating unmanaged instance of {_type_name(bean_class)}")
        with _creation_of(name):
            raw = self._resolver.resolve(name, definition)
            return self._orchestrator.initialize(raw, name, definition)

    def autowire_bean(self, existing: T) -> T:
        """Inject beans into the annotated class attributes of ``existing``.

        Attributes already set on the instance are left alone, and so are
        annotated attributes no bean matches.

        Example::

            class ReportView:
                repository: UserRepository

            view = factory.autowire_bean(ReportView())
        """
        name = default_bean_name(type(existing))
        with _creation_of(name):
            assigned = getattr(existing, '__dict__', {})
            for attribute in injectable_attributes(type(existing)):
                if attribute.name in assigned:
                    continue
                if not self.get_bean_names_for_type(attribute.type):
                    continue
                setattr(existing, attribute.name, self.get_bean(attribute.type))
        return existing

    def initialize_bean(self, existing: T, name: Optional[str] = None) -> T:
        """Run awareness callbacks, post-processors and init callbacks on ``existing``.

        Returns:
            The initialized object, possibly replaced by a post-processor
        """
        name = name or default_bean_name(type(existing))
        with _creation_of(name):
            return self._orchestrator.initialize(existing, name, finalize(BeanDefinition(name)))

    def destroy_bean(self, existing: Any) -> None:
        """Run the destruction callbacks of an object the container does not own."""
        self._orchestrator.destroy(existing, default_bean_name(type(existing)), None)

    # Introspection

    def contains_bean(self, name: str) -> bool:
        if self.contains_local_bean(name):
            return True
        return self._parent is not None and self._parent.contains_bean(name)

    def contains_local_bean(self, name: str) -> bool:
        canonical = self._registry.resolve_alias(name)
        return self._registry.contains(canonical) or self._scope_manager.contains_singleton(canonical)

    @property
    def parent_bean_factory(self) -> Optional[BeanResolver]:
        return self._parent

    def contains_bean_definition(self, name: str) -> bool:
        return self._registry.contains(name)

    def get_bean_definition(self, name: str) -> BeanDefinition:
        """Return the merged definition for ``name``."""
        return self._registry.get_merged_definition(name)

    def get_bean_definition_names(self) -> List[str]:
        return self._registry.names()

    def is_singleton(self, name: str) -> bool:
        canonical = self._registry.resolve_alias(name)
        instance = self._scope_manager.get_singleton(canonical, _MISSING)
        if instance is not _MISSING:
            return not isinstance(instance, FactoryBean) or instance.is_singleton

        definition = self._local_definition(name)
        if definition is None:
            return self._parent.is_singleton(name)
        if not definition.is_singleton:
            return False
        if _is_factory_bean_class(self._predict_bean_class(definition)):
            return self.get_bean(canonical, mode=LookupMode.BY_NAME_UNWRAP_FACTORY).is_singleton
        return True

    def is_prototype(self, name: str) -> bool:
        canonical = self._registry.resolve_alias(name)
        instance = self._scope_manager.get_singleton(canonical, _MISSING)
        if instance is not _MISSING:
            return isinstance(instance, FactoryBean) and not instance.is_singleton

        definition = self._local_definition(name)
        if definition is None:
            return self._parent.is_prototype(name)
        if definition.is_prototype:
            return True
        if definition.is_singleton and _is_factory_bean_class(self._predict_bean_class(definition)):
            return not self.get_bean(canonical, mode=LookupMode.BY_NAME_UNWRAP_FACTORY).is_singleton
        return False

    def is_type_match(self, name: str, type_to_match: Type,
                      mode: LookupMode = LookupMode.BY_NAME) -> bool:
        """Check whether ``get_bean(name)`` would return a ``type_to_match``.

        Never creates a bean to find out; unknown types do not match.
        """
        canonical = self._registry.resolve_alias(name)
        instance = self._scope_manager.get_singleton(canonical, _MISSING)
        if instance is not _MISSING and not isinstance(instance, FactoryBean):
            return isinstance(instance, type_to_match)
        predicted = self.get_type(name, allow_factory_bean_init=False, mode=mode)
        return predicted is not None and _is_assignable(predicted, type_to_match)

    def get_type(self, name: str, allow_factory_bean_init: bool = True,
                 mode: LookupMode = LookupMode.BY_NAME) -> Optional[Type]:
        """Return the type of the bean ``get_bean(name, mode=mode)`` would return.

        Args:
            name: Bean name or alias
            allow_factory_bean_init: Whether a FactoryBean that exposes no
                ``object_type`` before creation may be created to find out
            mode: Whether to report the FactoryBean's own type

        Returns:
            The type, or None when it cannot be determined without
            creating a bean (and creation is not allowed)

        Raises:
            NoSuchBeanError: When the name is unknown
        """
        canonical = self._registry.resolve_alias(name)
        instance = self._scope_manager.get_singleton(canonical, _MISSING)
        if instance is not _MISSING:
            if isinstance(instance, FactoryBean) and mode is LookupMode.BY_NAME:
                return instance.object_type
            return type(instance)

        definition = self._local_definition(name)
        if definition is None:
            return self._parent.get_type(name, allow_factory_bean_init, mode)

        bean_class = self._predict_bean_class(definition)
        if mode is LookupMode.BY_NAME_UNWRAP_FACTORY or not _is_factory_bean_class(bean_class):
            return bean_class
        if (definition.abstract or not allow_factory_bean_init
                or self._scope_manager.is_in_creation(canonical) or is_resolving(canonical)):
            return None
        factory_bean = self.get_bean(canonical, mode=LookupMode.BY_NAME_UNWRAP_FACTORY)
        return factory_bean.object_type

    def get_aliases(self, name: str) -> List[str]:
        if self._parent is not None and not self.contains_local_bean(name):
            return self._parent.get_aliases(name)
        return self._registry.get_aliases(name)

    def resolve_alias(self, name: str) -> str:
        return self._registry.resolve_alias(name)

    def _local_definition(self, name: str) -> Optional[BeanDefinition]:
        """Merged definition, or None when only the parent can answer."""
        if self._registry.contains(name):
            return self._registry.get_merged_definition(name)
        if self._parent is not None:
            return None
        raise self._not_found(name)

    # Enumeration

    def get_bean_names_for_type(self, required_type: Type,
                                allow_eager_init: bool = True) -> List[str]:
        """Names of the beans whose type matches, in registration order.

        Args:
            required_type: Type to match
            allow_eager_init: Whether FactoryBeans may be created to learn
                their product type
        """
        names = []
        for name in self._registry.names():
            definition = self._registry.get_merged_definition(name)
            if definition.abstract:
                continue
            predicted = self.get_type(name, allow_factory_bean_init=allow_eager_init)
            if predicted is not None and _is_assignable(predicted, required_type):
                names.append(name)

        for name in self._scope_manager.singleton_names:
            if name in names or self._registry.contains(name):
                continue
            if self.is_type_match(name, required_type):
                names.append(name)
        return names

    def get_beans_of_type(self, required_type: Type[T]) -> Dict[str, T]:
        return {name: self.get_bean(name) for name in self.get_bean_names_for_type(required_type)}

    # Lifecycle

    def preinstantiate_singletons(self) -> None:
        """Create every non-lazy, non-abstract singleton now."""
        names = self._registry.names()
        logger.info(f"Pre-instantiating singletons in {self!r}: {', '.join(names) or 'None'}")
        for name in names:
            definition = self._registry.get_merged_definition(name)
            if definition.abstract or not definition.is_singleton or definition.lazy:
                continue
            if _is_factory_bean_class(self._predict_bean_class(definition)):
                self.get_bean(name, mode=LookupMode.BY_NAME_UNWRAP_FACTORY)
            else:
                self.get_bean(name)

    def destroy_singletons(self) -> None:
        """Destroy container-created singletons in reverse creation order.

        Failing destroy callbacks are logged; the remaining beans are still
        destroyed.
        """
        with self._scope_manager.creation_lock:
            self._factory_products.clear()
        self._scope_manager.destroy_singletons(self._destroy_singleton)

    def _destroy_singleton(self, name: str, bean: Any) -> None:
        definition = (
            self._registry.get_merged_definition(name)
            if self._registry.contains(name) else None
        )
        self._destroy_bean(name, bean, definition)

    def _destroy_bean(self, name: str, bean: Any, definition: Optional[BeanDefinition]) -> None:
        if self._orchestrator.requires_destruction(bean, definition):
            self._orchestrator.destroy(bean, name, definition)

    # Errors

    def _not_found(self, name: str) -> NoSuchBeanError:
        registered = ", ".join(self._registry.names()) or "None"
        return NoSuchBeanError(
            f"No bean named '{name}' available.\n"
            f"Registered beans: {registered}",
            bean_name=name,
        )

    @staticmethod
    def _explicit_args_error(name: str) -> BeanCreationError:
        return BeanCreationError(
            name,
            "Explicit arguments are not allowed: the singleton has already been "
            "created and cannot be re-parameterized",
            current_path(),
        )

    def __repr__(self) -> str:
        return f"BeanFactory(definitions={len(self._registry)})"

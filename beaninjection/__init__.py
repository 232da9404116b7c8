# Public API
from .aware import (
    BeanFactoryAware,
    BeanNameAware,
    DisposableBean,
    EnvironmentAware,
    EventPublisherAware,
    FactoryBean,
    InitializingBean,
    ResourceLoaderAware,
    TypeLoaderAware,
)
from .bean_factory import BeanFactory
from .config import BeanFactoryConfig
from .core import BeanInjectionCore
from .definition import INFER_METHOD, BeanDefinition, Ref
from .exceptions import (
    AliasCycleError,
    AmbiguousBeanError,
    BeanCreationError,
    BeanDefinitionError,
    BeanInjectionError,
    BeanNotOfRequiredTypeError,
    CircularReferenceError,
    ContainerClosedError,
    DuplicateDefinitionError,
    NoSuchBeanError,
    RegistrySealedError,
    ScopeNotActiveError,
)
from .interfaces import (
    AutowireCapableBeanResolver,
    BeanResolver,
    HierarchicalBeanResolver,
    ListableBeanResolver,
)
from .lifecycle import BeanLifeCycle, BeanState, LookupMode
from .module import BeanInjectionModule
from .post_processor import BeanPostProcessor
from .provider import BeanProvider
from .scope import KeyedScope, Scope
from .type_loader import TypeLoader

__all__ = [
    "BeanFactory",
    "BeanFactoryConfig",
    "BeanInjectionCore",
    "BeanInjectionModule",
    "BeanDefinition",
    "Ref",
    "INFER_METHOD",
    "BeanLifeCycle",
    "BeanState",
    "LookupMode",
    "BeanProvider",
    "BeanPostProcessor",
    "Scope",
    "KeyedScope",
    "TypeLoader",
    # Capability interfaces
    "BeanResolver",
    "ListableBeanResolver",
    "HierarchicalBeanResolver",
    "AutowireCapableBeanResolver",
    # Lifecycle interfaces
    "BeanNameAware",
    "TypeLoaderAware",
    "BeanFactoryAware",
    "EnvironmentAware",
    "ResourceLoaderAware",
    "EventPublisherAware",
    "InitializingBean",
    "DisposableBean",
    "FactoryBean",
    # Exceptions
    "BeanInjectionError",
    "BeanDefinitionError",
    "RegistrySealedError",
    "DuplicateDefinitionError",
    "NoSuchBeanError",
    "AmbiguousBeanError",
    "BeanNotOfRequiredTypeError",
    "AliasCycleError",
    "ScopeNotActiveError",
    "CircularReferenceError",
    "BeanCreationError",
    "ContainerClosedError",
]

# Version will be dynamically set by poetry-dynamic-versioning
try:
    from ._version import __version__
except ImportError:
    # Fallback for development
    __version__ = '0.0.0'

"""
LifecycleOrchestrator

Drives every bean through its initialization stages, in this order:

    INSTANTIATED
    -> AWARENESS_INJECTED   name, type loader, bean factory, environment,
                            resource loader, event publisher
    -> PRE_INIT_PROCESSED   BeanPostProcessor.before_init, registration order
    -> CUSTOM_INIT          after_properties_set(), then the init method
    -> POST_INIT_PROCESSED  BeanPostProcessor.after_init, registration order
    -> READY

and mirrors it at destruction:

    READY -> PRE_DESTROY_PROCESSED -> CUSTOM_DESTROY -> DESTROYED

Stages a bean has no hook for are passed through without effect.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Tuple, Type

from .aware import (
    BeanFactoryAware,
    BeanNameAware,
    DisposableBean,
    EnvironmentAware,
    EventPublisherAware,
    InitializingBean,
    ResourceLoaderAware,
    TypeLoaderAware,
)
from .definition import INFER_METHOD, INFERRED_DESTROY_METHODS, BeanDefinition
from .exceptions import BeanCreationError, BeanInjectionError
from .lifecycle import BeanState
from .post_processor import BeanPostProcessor
from .resolution_context import current_path

if TYPE_CHECKING:
    from .bean_factory import BeanFactory

logger = logging.getLogger(__name__)

# (capability, injector) pairs; the order is the order of injection
AwarenessInjector = Tuple[Type, Callable[[Any, str], None]]


class LifecycleOrchestrator:
    """Applies awareness callbacks, post-processors and init/destroy methods.

    Attributes:
        _post_processors: Registered BeanPostProcessors in registration order
        _awareness: Ordered (capability, injector) pairs
    """

    def __init__(self, bean_factory: 'BeanFactory'):
        self._post_processors: List[BeanPostProcessor] = []
        self._awareness: List[AwarenessInjector] = [
            (BeanNameAware, lambda bean, name: bean.set_bean_name(name)),
            (TypeLoaderAware, lambda bean, name: bean.set_type_loader(bean_factory.type_loader)),
            (BeanFactoryAware, lambda bean, name: bean.set_bean_factory(bean_factory)),
            (EnvironmentAware, lambda bean, name: bean.set_environment(bean_factory.environment)),
            (ResourceLoaderAware,
             lambda bean, name: bean.set_resource_loader(bean_factory.resource_loader)),
            (EventPublisherAware,
             lambda bean, name: bean.set_event_publisher(bean_factory.event_publisher)),
        ]

    def add_post_processor(self, post_processor: BeanPostProcessor) -> None:
        """Register a processor; re-adding one moves it to the end."""
        if post_processor in self._post_processors:
            self._post_processors.remove(post_processor)
        self._post_processors.append(post_processor)

    @property
    def post_processors(self) -> List[BeanPostProcessor]:
        return list(self._post_processors)

    # Initialization

    def initialize(self, bean: Any, name: str, definition: BeanDefinition) -> Any:
        """Run every initialization stage and return the (possibly replaced) bean.

        Raises:
            BeanCreationError: When any callback fails
        """
        self._transition(name, BeanState.INSTANTIATED)
        try:
            for capability, inject in self._awareness:
                if isinstance(bean, capability):
                    inject(bean, name)
            self._transition(name, BeanState.AWARENESS_INJECTED)

            for post_processor in self._post_processors:
                result = post_processor.before_init(bean, name)
                if result is not None:
                    bean = result
            self._transition(name, BeanState.PRE_INIT_PROCESSED)

            self._invoke_init_methods(bean, name, definition)
            self._transition(name, BeanState.CUSTOM_INIT)

            bean = self.apply_after_init(bean, name)
        except BeanInjectionError:
            raise
        except Exception as e:
            raise BeanCreationError(
                name, f"Initialization of bean failed: {e}", current_path()
            ) from e

        self._transition(name, BeanState.READY)
        return bean

    def apply_after_init(self, bean: Any, name: str) -> Any:
        """Run the after_init hooks only; also used for FactoryBean products."""
        for post_processor in self._post_processors:
            result = post_processor.after_init(bean, name)
            if result is not None:
                bean = result
        self._transition(name, BeanState.POST_INIT_PROCESSED)
        return bean

    def _invoke_init_methods(self, bean: Any, name: str, definition: BeanDefinition) -> None:
        is_initializing = isinstance(bean, InitializingBean)
        if is_initializing:
            bean.after_properties_set()

        init_method = definition.init_method
        if init_method and not (is_initializing and init_method == 'after_properties_set'):
            method = getattr(bean, init_method, None)
            if not callable(method):
                raise BeanCreationError(
                    name,
                    f"Could not find an init method named '{init_method}' "
                    f"on {type(bean).__name__}",
                    current_path(),
                )
            method()

    # Destruction

    def requires_destruction(self, bean: Any, definition: Optional[BeanDefinition]) -> bool:
        return (
            isinstance(bean, DisposableBean)
            or bool(self._post_processors)
            or self._destroy_method(bean, definition) is not None
        )

    def destroy(self, bean: Any, name: str, definition: Optional[BeanDefinition]) -> None:
        """Run the destruction stages. Failures are logged, never raised."""
        for post_processor in self._post_processors:
            try:
                post_processor.before_destroy(bean, name)
            except Exception:
                logger.warning(
                    f"before_destroy of {type(post_processor).__name__} failed for bean '{name}'",
                    exc_info=True,
                )
        self._transition(name, BeanState.PRE_DESTROY_PROCESSED)

        is_disposable = isinstance(bean, DisposableBean)
        if is_disposable:
            try:
                bean.destroy()
            except Exception:
                logger.warning(f"Invocation of destroy() failed on bean '{name}'", exc_info=True)

        method_name = self._destroy_method(bean, definition)
        if method_name and not (is_disposable and method_name == 'destroy'):
            try:
                getattr(bean, method_name)()
            except Exception:
                logger.warning(
                    f"Invocation of destroy method '{method_name}' failed on bean '{name}'",
                    exc_info=True,
                )
        self._transition(name, BeanState.CUSTOM_DESTROY)
        self._transition(name, BeanState.DESTROYED)

    @staticmethod
    def _destroy_method(bean: Any, definition: Optional[BeanDefinition]) -> Optional[str]:
        if definition is None or not definition.destroy_method:
            return None
        if definition.destroy_method == INFER_METHOD:
            for candidate in INFERRED_DESTROY_METHODS:
                if callable(getattr(bean, candidate, None)):
                    return candidate
            return None
        if not callable(getattr(bean, definition.destroy_method, None)):
            logger.warning(
                f"Could not find a destroy method named '{definition.destroy_method}' "
                f"on bean '{definition.name}'"
            )
            return None
        return definition.destroy_method

    @staticmethod
    def _transition(name: str, state: BeanState) -> None:
        logger.debug(f"Bean '{name}' -> {state.value}")

"""
BeanInjection Exceptions

Custom exception hierarchy for the BeanInjection container
"""

from typing import Optional, Sequence


class BeanInjectionError(Exception):
    """
    Base exception for all BeanInjection errors.

    All container-specific exceptions inherit from this class.
    You can catch this to handle any container error generically.

    Example:
        >>> try:
        ...     service = factory.get_bean("userService")
        ... except BeanInjectionError as e:
        ...     print(f"DI error: {e}")
    """

    pass


class ContainerClosedError(BeanInjectionError):
    """
    Raised when attempting to use a closed container.

    This error occurs when calling ``get_bean()`` or ``load_modules()``
    on a ``BeanInjectionCore`` that has been closed.

    Solution:
        Create a new ``BeanInjectionCore`` instead of reusing a closed one::

            with BeanInjectionCore(modules=[module]) as app:
                service = app.get_bean("service")  # OK
            # Container is now closed
    """

    pass


class BeanDefinitionError(BeanInjectionError):
    """
    Raised when a bean definition is invalid.

    Common causes:
        - Requesting an abstract (template) definition directly
        - A definition with neither ``bean_type`` nor ``factory``
          after merging with its parents
        - A parent chain that refers back to itself
        - A dotted type path that cannot be imported
    """

    pass


class RegistrySealedError(BeanDefinitionError):
    """
    Raised when registering a definition that can no longer change.

    Definitions are immutable once their name has been resolved, and the
    whole registry is read-only after ``seal()``.

    Solution:
        Register every definition before the first lookup, or build a new
        container for the new definitions.
    """

    pass


class DuplicateDefinitionError(BeanInjectionError):
    """
    Raised when a bean name is registered twice.

    This error occurs when a definition or alias uses a name that is
    already bound and ``allow_definition_overriding`` is disabled.

    Solution:
        1. Use a distinct name for each bean
        2. Register an alias instead of a second definition
        3. Enable overriding explicitly::

            factory = BeanFactory(BeanFactoryConfig(allow_definition_overriding=True))
    """

    pass


class NoSuchBeanError(BeanInjectionError):
    """
    Raised when a requested bean cannot be found.

    Lookup by name misses, or lookup by type finds no candidate.

    Note:
        The error message lists the registered bean names to help
        identify available dependencies.
    """

    def __init__(self, message: str, bean_name: Optional[str] = None,
                 bean_type: Optional[type] = None):
        super().__init__(message)
        self.bean_name = bean_name
        self.bean_type = bean_type


class AmbiguousBeanError(NoSuchBeanError):
    """
    Raised when a type lookup matches several beans.

    Solution:
        Mark exactly one of the candidates as primary::

            module.single[MySqlStore](name="mysql", primary=True)
            module.single[MemoryStore](name="memory")

        Or look the bean up by name instead of by type.
    """

    def __init__(self, message: str, bean_type: Optional[type] = None,
                 candidates: Sequence[str] = ()):
        super().__init__(message, bean_type=bean_type)
        self.candidates = list(candidates)


class BeanNotOfRequiredTypeError(BeanInjectionError):
    """Raised when ``get_bean(name, required_type=...)`` finds a bean of another type."""

    def __init__(self, bean_name: str, required_type: type, actual_type: type):
        super().__init__(
            f"Bean '{bean_name}' is expected to be of type "
            f"{required_type.__name__} but was actually of type {actual_type.__name__}"
        )
        self.bean_name = bean_name
        self.required_type = required_type
        self.actual_type = actual_type


class AliasCycleError(BeanInjectionError):
    """
    Raised when alias resolution does not terminate.

    Example of an alias cycle::

        module.alias("a", "b")
        module.alias("b", "a")  # Cycle!

    The error is raised at registration time when the cycle can be
    detected, and at resolution time when a chain exceeds
    ``max_alias_chain`` hops.
    """

    pass


class ScopeNotActiveError(BeanInjectionError):
    """
    Raised when a custom scope is used outside of an active context.

    Solution:
        Activate the scope context around the lookup::

            with request_scope.activate("req-1"):
                ctx = factory.get_bean("requestContext")
    """

    pass


class CircularReferenceError(BeanInjectionError):
    """
    Raised when a circular dependency cannot be resolved.

    Constructor-level cycles never resolve::

        class ServiceA:
            def __init__(self, b: ServiceB): ...

        class ServiceB:
            def __init__(self, a: ServiceA): ...  # Circular!

    Property-level cycles resolve between singletons only, through an
    early reference. Prototype property cycles still fail.

    Attributes:
        bean_name: The bean that was requested while already in creation
        resolution_path: The chain of bean names leading to the cycle
    """

    def __init__(self, bean_name: str, resolution_path: Sequence[str] = (),
                 message: Optional[str] = None):
        self.bean_name = bean_name
        self.resolution_path = tuple(resolution_path)
        if message is None:
            cycle = " -> ".join(self.resolution_path + (bean_name,))
            message = (
                f"Requested bean '{bean_name}' is currently in creation: "
                f"Is there an unresolvable circular reference? {cycle}"
            )
        super().__init__(message)


class BeanCreationError(BeanInjectionError):
    """
    Raised when a bean fails during instantiation, property population
    or initialization.

    The original exception is preserved as ``__cause__``.

    Attributes:
        bean_name: The bean whose creation failed
        resolution_path: The chain of bean names being resolved at the time
    """

    def __init__(self, bean_name: str, message: str,
                 resolution_path: Sequence[str] = ()):
        self.bean_name = bean_name
        self.resolution_path = tuple(resolution_path)
        text = f"Error creating bean with name '{bean_name}': {message}"
        if len(self.resolution_path) > 1:
            text += f"\nResolution path: {' -> '.join(self.resolution_path)}"
        super().__init__(text)

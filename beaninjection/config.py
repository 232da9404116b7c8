"""
BeanFactoryConfig

Policy switches for a BeanFactory
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class BeanFactoryConfig:
    """Container policy.

    Attributes:
        allow_definition_overriding: Re-registering a bound name replaces the
            old definition instead of raising DuplicateDefinitionError
        allow_circular_references: Expose early references so that
            property-level cycles between singletons resolve
        max_alias_chain: Upper bound on alias hops followed by resolve_alias()
        default_lazy: Laziness of singletons whose definitions leave it unset
    """
    allow_definition_overriding: bool = False
    allow_circular_references: bool = True
    max_alias_chain: int = 32
    default_lazy: bool = False

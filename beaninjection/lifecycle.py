"""
Lifecycle Enums

Scope kinds, per-instance lifecycle states and lookup modes
"""

from enum import Enum
from typing import Union


class BeanLifeCycle(Enum):
    """Built-in scope kinds of a bean"""
    SINGLETON = "singleton"
    PROTOTYPE = "prototype"


# Either a built-in scope kind or the name of a registered custom scope
ScopeName = Union[BeanLifeCycle, str]


def normalize_scope(scope: ScopeName) -> ScopeName:
    """Map the strings "singleton" and "prototype" onto their enum members."""
    if isinstance(scope, BeanLifeCycle):
        return scope
    try:
        return BeanLifeCycle(scope)
    except ValueError:
        return scope


class BeanState(Enum):
    """Stages an instance passes through, in order"""
    INSTANTIATED = "INSTANTIATED"
    AWARENESS_INJECTED = "AWARENESS_INJECTED"
    PRE_INIT_PROCESSED = "PRE_INIT_PROCESSED"
    CUSTOM_INIT = "CUSTOM_INIT"
    POST_INIT_PROCESSED = "POST_INIT_PROCESSED"
    READY = "READY"
    PRE_DESTROY_PROCESSED = "PRE_DESTROY_PROCESSED"
    CUSTOM_DESTROY = "CUSTOM_DESTROY"
    DESTROYED = "DESTROYED"


class LookupMode(Enum):
    """How a by-name lookup treats factory beans.

    BY_NAME returns the product of a FactoryBean; BY_NAME_UNWRAP_FACTORY
    returns the FactoryBean instance itself.
    """
    BY_NAME = "BY_NAME"
    BY_NAME_UNWRAP_FACTORY = "BY_NAME_UNWRAP_FACTORY"

"""
Definition

Data classes describing how a bean is constructed and scoped
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Optional, Tuple, Type, Union

from .lifecycle import BeanLifeCycle, ScopeName, normalize_scope


# destroy_method value that looks for close() or shutdown() on the bean
INFER_METHOD = "(inferred)"
INFERRED_DESTROY_METHODS = ("close", "shutdown")


@dataclass(frozen=True)
class Ref:
    """Reference to another bean, used as a constructor argument or property value.

    Attributes:
        target: Bean name (str) or type to look up
        optional: Inject None instead of failing when nothing matches
        provider: Inject a BeanProvider for ``target`` instead of the bean
    """
    target: Union[str, Type]
    optional: bool = False
    provider: bool = False


@dataclass(frozen=True)
class BeanDefinition:
    """Bean definition.

    Fields left as None are unset and inherited from the parent definition
    when ``parent`` is given.
    """
    name: str
    bean_type: Optional[Union[Type, str]] = None  # Type or dotted import path
    factory: Optional[Callable[..., Any]] = None  # Used instead of bean_type
    scope: Optional[ScopeName] = None
    lazy: Optional[bool] = None
    args: Optional[Tuple[Any, ...]] = None
    kwargs: Optional[Dict[str, Any]] = None
    properties: Optional[Dict[str, Any]] = None
    autowire: Optional[bool] = None
    init_method: Optional[str] = None
    destroy_method: Optional[str] = None
    depends_on: Optional[Tuple[str, ...]] = None
    abstract: bool = False
    parent: Optional[str] = None
    primary: bool = False
    # Set on definitions produced by merge(); never set by callers
    merged: bool = field(default=False, compare=False)

    @property
    def resolved_scope(self) -> ScopeName:
        return normalize_scope(self.scope) if self.scope is not None else BeanLifeCycle.SINGLETON

    @property
    def is_singleton(self) -> bool:
        return self.resolved_scope == BeanLifeCycle.SINGLETON

    @property
    def is_prototype(self) -> bool:
        return self.resolved_scope == BeanLifeCycle.PROTOTYPE

    def __repr__(self) -> str:
        type_name = getattr(self.bean_type, "__name__", self.bean_type)
        scope = self.resolved_scope
        scope_name = scope.value if isinstance(scope, BeanLifeCycle) else scope
        return f"BeanDefinition(name={self.name!r}, type={type_name}, scope={scope_name})"


def merge(parent: BeanDefinition, child: BeanDefinition) -> BeanDefinition:
    """Overlay ``child`` on an already-merged ``parent``.

    Unset child fields take the parent's value and properties are merged
    key by key. ``abstract``, ``primary`` and the name always come from
    the child.
    """
    overrides = {}
    for name in ("bean_type", "factory", "scope", "lazy", "args", "kwargs",
                 "autowire", "init_method", "destroy_method", "depends_on"):
        value = getattr(child, name)
        if value is not None:
            overrides[name] = value

    properties = dict(parent.properties or {})
    properties.update(child.properties or {})

    return replace(
        parent,
        name=child.name,
        abstract=child.abstract,
        primary=child.primary,
        parent=None,
        properties=properties,
        merged=True,
        **overrides,
    )


def finalize(definition: BeanDefinition, default_lazy: bool = False) -> BeanDefinition:
    """Fill in defaults for fields still unset after merging."""
    return replace(
        definition,
        scope=definition.resolved_scope,
        lazy=default_lazy if definition.lazy is None else definition.lazy,
        args=tuple(definition.args or ()),
        kwargs=dict(definition.kwargs or {}),
        properties=dict(definition.properties or {}),
        autowire=bool(definition.autowire),
        depends_on=tuple(definition.depends_on or ()),
        parent=None,
        merged=True,
    )

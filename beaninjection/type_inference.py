"""
Type Inference

Constructor and attribute analysis for autowiring.

An autowired definition declares no constructor arguments; instead every
``__init__`` parameter is resolved by its annotated type. Forward
references (string annotations and PEP 563) are resolved against the
class's module, with PEP 604 unions rewritten to ``Union[...]`` first so
that types which do not support ``|`` still evaluate.
"""

import ast
import inspect
import types
import typing
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type, Union

from .exceptions import BeanDefinitionError


@dataclass(frozen=True)
class ConstructorParameter:
    """One injectable ``__init__`` parameter.

    Attributes:
        name: Parameter name, used as keyword when calling the constructor
        type: Annotated type with Optional[] stripped
        optional: The annotation was Optional[...] (None is acceptable)
        has_default: The parameter may be left out of the call
    """
    name: str
    type: Any
    optional: bool = False
    has_default: bool = False


def constructor_parameters(cls: Any) -> List[ConstructorParameter]:
    """Extract the injectable parameters of ``cls.__init__``, or of ``cls`` itself
    when it is a factory function.

    ``self``, ``*args`` and ``**kwargs`` are skipped.

    Raises:
        BeanDefinitionError: When a parameter without default has no type
            hint, the constructor cannot be inspected, or a forward
            reference cannot be resolved
    """
    target = cls.__init__ if isinstance(cls, type) else cls
    try:
        sig = inspect.signature(target)
    except (ValueError, TypeError) as e:
        raise BeanDefinitionError(
            f"Cannot inspect {cls.__name__}.__init__: {e}. "
            f"This may occur with built-in types or C extension classes."
        ) from e

    hints = _resolve_type_hints(cls)

    parameters = []
    for param_name, param in sig.parameters.items():
        if param_name == 'self':
            continue
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue

        has_default = param.default is not inspect.Parameter.empty
        if param.annotation is inspect.Parameter.empty:
            if has_default:
                continue
            raise BeanDefinitionError(
                f"Missing type hint for parameter '{param_name}' in {cls.__name__}.__init__. "
                f"Autowiring requires type hints for all parameters without defaults."
            )

        param_type = hints.get(param_name, param.annotation)
        if isinstance(param_type, str):
            param_type = _resolve_string_annotation(cls, param_name, param_type)

        param_type, optional = _unwrap_optional(param_type)
        parameters.append(ConstructorParameter(
            name=param_name,
            type=param_type,
            optional=optional,
            has_default=has_default,
        ))

    return parameters


def injectable_attributes(cls: Type) -> List[ConstructorParameter]:
    """Class-level annotated attributes of ``cls`` and its bases.

    ``ClassVar`` annotations and names starting with an underscore are
    skipped. ``has_default`` is set when the class defines a value.

    Raises:
        BeanDefinitionError: When an annotation cannot be resolved
    """
    try:
        hints = typing.get_type_hints(cls)
    except Exception as e:
        raise BeanDefinitionError(
            f"Cannot resolve attribute annotations of {cls.__name__}: {e}"
        ) from e

    attributes = []
    for attr_name, hint in hints.items():
        if attr_name.startswith('_') or typing.get_origin(hint) is typing.ClassVar:
            continue
        attr_type, optional = _unwrap_optional(hint)
        attributes.append(ConstructorParameter(
            name=attr_name,
            type=attr_type,
            optional=optional,
            has_default=hasattr(cls, attr_name),
        ))
    return attributes


def declared_return_type(factory: Any) -> Optional[Type]:
    """Type a factory callable produces: the class itself, or its return annotation."""
    if isinstance(factory, type):
        return factory
    return_type = _resolve_type_hints(factory).get('return')
    return return_type if isinstance(return_type, type) else None


# X | Y evaluates to types.UnionType on 3.10+
_UNION_ORIGINS = (Union, getattr(types, "UnionType", Union))


def _unwrap_optional(param_type: Any):
    if typing.get_origin(param_type) in _UNION_ORIGINS:
        members = [t for t in typing.get_args(param_type) if t is not type(None)]
        if len(members) == 1 and len(typing.get_args(param_type)) == 2:
            return members[0], True
    return param_type, False


def _resolve_type_hints(cls: Type) -> Dict[str, Any]:
    # Unresolvable names fall back to the raw annotations
    try:
        return typing.get_type_hints(cls.__init__ if isinstance(cls, type) else cls)
    except Exception:
        return {}


def _resolve_string_annotation(cls: Type, param_name: str, annotation: str) -> Any:
    module = inspect.getmodule(cls)
    if module is None:
        raise BeanDefinitionError(
            f"Cannot resolve forward reference '{annotation}' for parameter "
            f"'{param_name}' in {cls.__name__}.__init__: "
            f"the class's module could not be determined."
        )

    namespace: Dict[str, Any] = dict(module.__dict__)
    namespace.update(getattr(cls, '__dict__', {}))
    namespace.setdefault('Union', Union)
    namespace.setdefault('Optional', Optional)

    try:
        return eval(_convert_union_syntax(annotation), namespace)
    except NameError:
        raise BeanDefinitionError(
            f"Cannot resolve forward reference '{annotation}' for parameter "
            f"'{param_name}' in {cls.__name__}.__init__. "
            f"Hint: Ensure '{annotation}' is defined and imported before "
            f"the bean is created."
        )
    except Exception as e:
        raise BeanDefinitionError(
            f"Invalid forward reference '{annotation}' for parameter "
            f"'{param_name}' in {cls.__name__}.__init__: {e}"
        ) from e


def _convert_union_syntax(annotation: str) -> str:
    """Rewrite ``X | Y`` as ``Union[X, Y]``.

    Example::

        >>> _convert_union_syntax('Database | None')
        'Union[Database, None]'
    """
    if '|' not in annotation:
        return annotation

    try:
        tree = ast.parse(annotation, mode='eval')
    except SyntaxError:
        return annotation

    class UnionTransformer(ast.NodeTransformer):
        def visit_BinOp(self, node: ast.BinOp) -> ast.AST:
            if isinstance(node.op, ast.BitOr):
                members = [self.visit(t) for t in _flatten_union(node)]
                return ast.Subscript(
                    value=ast.Name(id='Union', ctx=ast.Load()),
                    slice=ast.Tuple(elts=members, ctx=ast.Load()),
                    ctx=ast.Load()
                )
            self.generic_visit(node)
            return node

    new_tree = UnionTransformer().visit(tree)
    ast.fix_missing_locations(new_tree)
    return ast.unparse(new_tree.body)


def _flatten_union(node: ast.BinOp) -> List[ast.AST]:
    members: List[ast.AST] = []

    def collect(n: ast.AST) -> None:
        if isinstance(n, ast.BinOp) and isinstance(n.op, ast.BitOr):
            collect(n.left)
            collect(n.right)
        else:
            members.append(n)

    collect(node)
    return members

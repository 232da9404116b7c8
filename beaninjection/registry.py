"""
DefinitionRegistry

Stores bean definitions by name together with the alias table.

Registration happens under a lock and replaces the underlying dicts
(copy-on-write), so lookups never lock and never observe a dict that is
being resized. A name becomes immutable once its merged definition has
been handed out, and ``seal()`` closes registration altogether.
"""

import logging
import threading
from dataclasses import replace
from typing import Dict, List, Optional, Set

from .config import BeanFactoryConfig
from .definition import BeanDefinition, finalize, merge
from .exceptions import (
    AliasCycleError,
    BeanDefinitionError,
    DuplicateDefinitionError,
    NoSuchBeanError,
    RegistrySealedError,
)

logger = logging.getLogger(__name__)


class DefinitionRegistry:
    """Bean definitions and aliases.

    Attributes:
        _definitions: Raw definitions by canonical name, in registration order
        _aliases: Alias to target name (which may itself be an alias)
        _merged: Finalized definitions for names that have been resolved
        _sealed: Registration closed flag
    """

    def __init__(self, config: Optional[BeanFactoryConfig] = None):
        self._config = config or BeanFactoryConfig()
        self._definitions: Dict[str, BeanDefinition] = {}
        self._aliases: Dict[str, str] = {}
        self._merged: Dict[str, BeanDefinition] = {}
        self._lock = threading.RLock()
        self._sealed = False

    # Registration

    def register(self, name: str, definition: BeanDefinition) -> None:
        """Bind ``definition`` to ``name``.

        Raises:
            RegistrySealedError: When the registry is sealed or ``name`` was
                already resolved
            DuplicateDefinitionError: When ``name`` is bound and overriding
                is disabled
        """
        if definition.name != name:
            definition = replace(definition, name=name)

        with self._lock:
            self._ensure_not_sealed(name)
            if name in self._merged:
                raise RegistrySealedError(
                    f"Cannot register bean definition for '{name}': "
                    f"the existing definition has already been used"
                )
            overriding = self._config.allow_definition_overriding
            if name in self._aliases:
                if not overriding:
                    raise DuplicateDefinitionError(
                        f"Cannot register bean definition for '{name}': "
                        f"the name is already used as an alias for '{self._aliases[name]}'"
                    )
                self._aliases = {k: v for k, v in self._aliases.items() if k != name}
            if name in self._definitions:
                if not overriding:
                    raise DuplicateDefinitionError(
                        f"Cannot register bean definition {definition!r}: "
                        f"there is already {self._definitions[name]!r} bound"
                    )
                logger.info(f"Overriding bean definition for '{name}'")

            self._definitions = {**self._definitions, name: definition}
            logger.debug(f"Registered {definition!r}")

    def remove(self, name: str) -> None:
        """Unbind ``name`` and every alias pointing at it. Unknown names are ignored."""
        with self._lock:
            self._ensure_not_sealed(name)
            canonical = self.resolve_alias(name)
            if canonical not in self._definitions:
                return
            aliases = set(self._aliases_of(canonical))
            self._definitions = {k: v for k, v in self._definitions.items() if k != canonical}
            self._aliases = {k: v for k, v in self._aliases.items() if k not in aliases}
            self._merged = {k: v for k, v in self._merged.items() if k != canonical}

    def register_alias(self, name: str, alias: str) -> None:
        """Make ``alias`` resolve to ``name``.

        Raises:
            AliasCycleError: When the alias would close a cycle
            DuplicateDefinitionError: When ``alias`` is already bound
                elsewhere and overriding is disabled
        """
        with self._lock:
            self._ensure_not_sealed(alias)
            if alias == name:
                self._aliases = {k: v for k, v in self._aliases.items() if k != alias}
                return
            existing = self._aliases.get(alias)
            if existing == name:
                return
            if not self._config.allow_definition_overriding:
                if alias in self._definitions:
                    raise DuplicateDefinitionError(
                        f"Cannot register alias '{alias}' for name '{name}': "
                        f"a bean definition is already bound under that name"
                    )
                if existing is not None:
                    raise DuplicateDefinitionError(
                        f"Cannot register alias '{alias}' for name '{name}': "
                        f"it is already registered for name '{existing}'"
                    )
            if self._has_alias_path(name, alias):
                raise AliasCycleError(
                    f"Cannot register alias '{alias}' for name '{name}': "
                    f"circular reference - '{name}' is a direct or indirect alias for '{alias}'"
                )
            self._aliases = {**self._aliases, alias: name}

    def remove_alias(self, alias: str) -> None:
        with self._lock:
            if alias not in self._aliases:
                raise NoSuchBeanError(f"No alias '{alias}' registered", bean_name=alias)
            self._aliases = {k: v for k, v in self._aliases.items() if k != alias}

    def seal(self) -> None:
        """Close the registration phase. Idempotent."""
        self._sealed = True

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    def _ensure_not_sealed(self, name: str) -> None:
        if self._sealed:
            raise RegistrySealedError(
                f"Cannot register '{name}': the registry is sealed"
            )

    # Lookup

    def resolve_alias(self, name: str) -> str:
        """Follow the alias chain from ``name`` to a canonical name.

        Names that are not aliases resolve to themselves, so the operation
        is idempotent.

        Raises:
            AliasCycleError: When the chain is longer than max_alias_chain
        """
        aliases = self._aliases
        canonical = name
        hops = 0
        while canonical in aliases:
            hops += 1
            if hops > self._config.max_alias_chain:
                raise AliasCycleError(
                    f"Alias chain starting at '{name}' exceeds "
                    f"{self._config.max_alias_chain} hops"
                )
            canonical = aliases[canonical]
        return canonical

    def contains(self, name: str) -> bool:
        return self.resolve_alias(name) in self._definitions

    def names(self) -> List[str]:
        """Canonical names in registration order."""
        return list(self._definitions)

    def get_definition(self, name: str) -> BeanDefinition:
        """Return the raw definition bound to ``name`` (aliases accepted).

        Raises:
            NoSuchBeanError: When nothing is bound
        """
        canonical = self.resolve_alias(name)
        definition = self._definitions.get(canonical)
        if definition is None:
            raise self._not_found(name)
        return definition

    def get_merged_definition(self, name: str) -> BeanDefinition:
        """Return the definition merged with its parent chain and defaults filled in.

        The first call freezes the name: it can no longer be re-registered.

        Raises:
            NoSuchBeanError: When nothing is bound
            BeanDefinitionError: When the parent chain is cyclic or the
                merged result has neither a type nor a factory
        """
        canonical = self.resolve_alias(name)
        merged = self._merged.get(canonical)
        if merged is not None:
            return merged

        with self._lock:
            merged = self._merged.get(canonical)
            if merged is None:
                raw = self._merge_chain(canonical, set())
                merged = finalize(raw, self._config.default_lazy)
                if not merged.abstract and merged.bean_type is None and merged.factory is None:
                    raise BeanDefinitionError(
                        f"Bean definition '{canonical}' has neither a bean_type nor a factory"
                    )
                self._merged = {**self._merged, canonical: merged}
            return merged

    def _merge_chain(self, name: str, seen: Set[str]) -> BeanDefinition:
        if name in seen:
            raise BeanDefinitionError(
                f"Parent chain of bean definition '{name}' refers back to itself"
            )
        definition = self._definitions.get(name)
        if definition is None:
            raise self._not_found(name)
        if definition.parent is None:
            return definition
        parent_name = self.resolve_alias(definition.parent)
        try:
            parent = self._merge_chain(parent_name, seen | {name})
        except NoSuchBeanError:
            raise BeanDefinitionError(
                f"Bean definition '{name}' has unknown parent '{definition.parent}'"
            )
        return merge(parent, definition)

    def get_aliases(self, name: str) -> List[str]:
        """Return the other names of the bean ``name`` refers to.

        When ``name`` is an alias, the canonical name comes first.
        """
        canonical = self.resolve_alias(name)
        result = []
        if canonical != name:
            result.append(canonical)
        result.extend(a for a in self._aliases_of(canonical) if a != name)
        return result

    def _aliases_of(self, canonical: str) -> List[str]:
        return [alias for alias in self._aliases if self.resolve_alias(alias) == canonical]

    def _has_alias_path(self, name: str, alias: str) -> bool:
        current = name
        for _ in range(len(self._aliases) + 1):
            if current == alias:
                return True
            if current not in self._aliases:
                return False
            current = self._aliases[current]
        return True

    def _not_found(self, name: str) -> NoSuchBeanError:
        registered = ", ".join(self._definitions) or "None"
        return NoSuchBeanError(
            f"No bean named '{name}' available.\n"
            f"Registered beans: {registered}",
            bean_name=name,
        )

    def __len__(self) -> int:
        return len(self._definitions)

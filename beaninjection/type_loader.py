"""
TypeLoader

Resolves dotted import paths such as ``"myapp.services.UserService"``
to types, so that definitions can name their type before it is imported.
"""

import importlib
import logging
import threading
from typing import Dict, Type, Union

from .exceptions import BeanDefinitionError

logger = logging.getLogger(__name__)


class TypeLoader:
    """Import-based type resolution with a per-loader cache."""

    def __init__(self):
        self._cache: Dict[str, Type] = {}
        self._lock = threading.Lock()

    def load(self, type_or_path: Union[Type, str]) -> Type:
        """Return ``type_or_path`` itself, or the object its dotted path names.

        Raises:
            BeanDefinitionError: When the module cannot be imported or has
                no such attribute
        """
        if not isinstance(type_or_path, str):
            return type_or_path

        cached = self._cache.get(type_or_path)
        if cached is not None:
            return cached

        module_path, _, attr_path = type_or_path.rpartition('.')
        if not module_path:
            raise BeanDefinitionError(
                f"Type path '{type_or_path}' must be fully qualified, "
                f"e.g. 'package.module.ClassName'"
            )
        try:
            module = importlib.import_module(module_path)
            loaded = getattr(module, attr_path)
        except (ImportError, AttributeError) as e:
            raise BeanDefinitionError(f"Cannot load type '{type_or_path}': {e}") from e

        logger.debug(f"Loaded type {type_or_path}")
        with self._lock:
            self._cache[type_or_path] = loaded
        return loaded

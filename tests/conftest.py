"""
Test Configuration and Utilities

Common base classes and helper functions for BeanInjection tests
"""

import unittest
from typing import Any, List, Optional, Type

from beaninjection import BeanDefinition, BeanFactory, BeanFactoryConfig, BeanInjectionModule


class BeanInjectionTestCase(unittest.TestCase):
    """
    Base test case class for BeanInjection tests.

    Creates a fresh BeanFactory before each test and destroys its
    singletons afterwards. Subclasses may set ``config`` to change the
    container policy.
    """

    config: Optional[BeanFactoryConfig] = None

    def setUp(self):
        self.factory = BeanFactory(self.config)

    def tearDown(self):
        self.factory.destroy_singletons()

    def define(self, name: str, bean_type: Any = None, **fields: Any) -> BeanDefinition:
        """Register a BeanDefinition on the test factory and return it.

        Example:
            >>> self.define("database", Database, destroy_method="close")
        """
        definition = BeanDefinition(name, bean_type=bean_type, **fields)
        self.factory.register_definition(definition)
        return definition


def create_simple_module(*service_classes: Type) -> BeanInjectionModule:
    """
    Create a simple module with singleton registrations for the given classes.

    Each class is registered under its default bean name and autowired.

    Args:
        *service_classes: Classes to register

    Returns:
        A BeanInjectionModule with the registrations

    Example:
        >>> module = create_simple_module(Database, CacheService)
        >>> app = BeanInjectionCore(modules=[module])
    """
    module = BeanInjectionModule()
    with module:
        for cls in service_classes:
            module.single[cls]()
    return module


class EventLog:
    """Ordered record of lifecycle events, shared between beans of one test."""

    def __init__(self):
        self.events: List[str] = []

    def record(self, event: str) -> None:
        self.events.append(event)

    def __iter__(self):
        return iter(self.events)

"""
BeanInjectionCore Tests

Tests for the application container: startup, eager initialization,
post-processor beans, custom scopes, parent containers and close().
"""

import time
import unittest

from beaninjection import (
    AutowireCapableBeanResolver,
    BeanCreationError,
    BeanFactoryConfig,
    BeanInjectionCore,
    BeanInjectionModule,
    ContainerClosedError,
    DuplicateDefinitionError,
    KeyedScope,
    NoSuchBeanError,
    RegistrySealedError,
    Scope,
    ScopeNotActiveError,
)

from conftest import EventLog, create_simple_module
from fixtures import CacheService, Closeable, Database, RecordingPostProcessor, UserRepository


class CountingService:
    """Counts how many instances were created."""

    instances = 0

    def __init__(self):
        CountingService.instances += 1


class RequestContext:
    """Scoped dependency for request scope."""

    def __init__(self):
        self.request_id = id(self)


class ApplicationWideScope(Scope):
    """Scope with a single context that never ends."""

    def __init__(self):
        self.instances = {}

    def get(self, name, object_factory):
        if name not in self.instances:
            self.instances[name] = object_factory()
        return self.instances[name]

    def remove(self, name):
        return self.instances.pop(name, None)

    def register_destruction_callback(self, name, callback):
        pass


class FailingService:
    def __init__(self):
        raise RuntimeError("startup failed")


class TestStartup(unittest.TestCase):
    """Tests for container startup"""

    def setUp(self):
        CountingService.instances = 0

    def test_singletons_created_at_start(self):
        module = create_simple_module(CountingService)

        with BeanInjectionCore(modules=[module]):
            self.assertEqual(CountingService.instances, 1)

    def test_lazy_module_defers_creation(self):
        module = BeanInjectionModule(lazy=True)
        with module:
            module.single[CountingService]()

        with BeanInjectionCore(modules=[module]) as app:
            self.assertEqual(CountingService.instances, 0)
            app.get[CountingService]()
            self.assertEqual(CountingService.instances, 1)

    def test_definition_level_eager_overrides_lazy_module(self):
        module = BeanInjectionModule(lazy=True)
        with module:
            module.single[CountingService](lazy=False)

        with BeanInjectionCore(modules=[module]):
            self.assertEqual(CountingService.instances, 1)

    def test_default_lazy_from_config(self):
        module = create_simple_module(CountingService)

        with BeanInjectionCore(modules=[module], config=BeanFactoryConfig(default_lazy=True)):
            self.assertEqual(CountingService.instances, 0)

    def test_prototypes_not_created_at_start(self):
        module = BeanInjectionModule()
        with module:
            module.prototype[CountingService]()

        with BeanInjectionCore(modules=[module]):
            self.assertEqual(CountingService.instances, 0)

    def test_dependencies_resolved_across_modules(self):
        infrastructure = create_simple_module(Database, CacheService)
        repositories = create_simple_module(UserRepository)

        with BeanInjectionCore(modules=[infrastructure, repositories]) as app:
            repo = app.get[UserRepository]()
            self.assertIs(repo.db, app.get_bean("database"))

    def test_duplicate_across_modules_rejected(self):
        with self.assertRaises(DuplicateDefinitionError):
            BeanInjectionCore(modules=[create_simple_module(Database), create_simple_module(Database)])

    def test_registry_sealed_after_start(self):
        with BeanInjectionCore(modules=[create_simple_module(Database)]) as app:
            with self.assertRaises(RegistrySealedError):
                app.bean_factory.register_alias("database", "db")

    def test_failed_startup_destroys_created_singletons(self):
        log = EventLog()
        module = BeanInjectionModule()
        with module:
            module.single[Closeable](args=(log, "pool"), destroy_method="close")
            module.single[FailingService]()

        with self.assertRaises(BeanCreationError) as ctx:
            BeanInjectionCore(modules=[module])

        self.assertEqual(ctx.exception.bean_name, "failingService")
        self.assertEqual(log.events, ["close:pool"])

    def test_unknown_bean(self):
        with BeanInjectionCore(modules=[create_simple_module(Database)]) as app:
            with self.assertRaises(NoSuchBeanError):
                app.get[CacheService]()


class TestPostProcessorBeans(unittest.TestCase):
    """Tests for BeanPostProcessor beans registered from modules"""

    def test_post_processor_bean_applied_to_other_beans(self):
        log = EventLog()
        module = BeanInjectionModule()
        with module:
            module.single[Database]()
            module.single[RecordingPostProcessor](args=(log,))

        with BeanInjectionCore(modules=[module]) as app:
            self.assertIn("pp.before_init:database", log.events)
            self.assertIn("pp.after_init:database", log.events)
            self.assertNotIn("pp.before_init:recordingPostProcessor", log.events)
            self.assertEqual(len(app.bean_factory.bean_post_processors), 1)

        self.assertIn("pp.before_destroy:database", log.events)


class TestScopes(unittest.TestCase):
    """Tests for custom scopes declared by modules"""

    def setUp(self):
        self.module = BeanInjectionModule()
        with self.module:
            self.module.single[Database]()
            with self.module.scope("request"):
                self.module.scoped[RequestContext]()

    def test_scope_registered_automatically(self):
        with BeanInjectionCore(modules=[self.module]) as app:
            self.assertIsInstance(app.bean_factory.get_registered_scope("request"), KeyedScope)

    def test_same_instance_within_scope(self):
        with BeanInjectionCore(modules=[self.module]) as app:
            with app.create_scope("request", "req-1"):
                first = app.get[RequestContext]()
                second = app.get[RequestContext]()

            self.assertIs(first, second)

    def test_different_instances_across_scopes(self):
        with BeanInjectionCore(modules=[self.module]) as app:
            with app.create_scope("request", "req-1"):
                first = app.get[RequestContext]()
            with app.create_scope("request", "req-2"):
                second = app.get[RequestContext]()

            self.assertIsNot(first, second)

    def test_scoped_outside_scope_raises(self):
        with BeanInjectionCore(modules=[self.module]) as app:
            with self.assertRaises(ScopeNotActiveError):
                app.get[RequestContext]()

    def test_unknown_scope_raises(self):
        with BeanInjectionCore(modules=[self.module]) as app:
            with self.assertRaises(ScopeNotActiveError):
                app.create_scope("session", "s-1")

    def test_explicit_scope_implementation_used(self):
        scope = ApplicationWideScope()

        with BeanInjectionCore(modules=[self.module], scopes={"request": scope}) as app:
            self.assertIs(app.bean_factory.get_registered_scope("request"), scope)
            self.assertIs(app.get[RequestContext](), app.get[RequestContext]())
            with self.assertRaises(TypeError):
                app.create_scope("request", "req-1")

    def test_close_ends_open_scope_contexts(self):
        log = EventLog()
        module = BeanInjectionModule()
        with module:
            with module.scope("request"):
                module.scoped[Closeable](args=(log, "ctx"), destroy_method="close")

        app = BeanInjectionCore(modules=[module])
        scope = app.bean_factory.get_registered_scope("request")
        with scope.activate("req-1", end_on_exit=False):
            app.get[Closeable]()

        app.close()

        self.assertEqual(log.events, ["close:ctx"])
        self.assertEqual(scope.context_ids, [])


class TestParentContainer(unittest.TestCase):
    """Tests for containers with a parent container"""

    def test_child_resolves_parent_beans(self):
        parent = BeanInjectionCore(modules=[create_simple_module(Database, CacheService)])
        child = BeanInjectionCore(modules=[create_simple_module(UserRepository)], parent=parent)

        repo = child.get[UserRepository]()

        self.assertIs(repo.db, parent.get[Database]())
        child.close()
        parent.close()

    def test_parent_accessor(self):
        parent = BeanInjectionCore(modules=[create_simple_module(Database)])
        child = BeanInjectionCore(parent=parent)

        self.assertIs(child.parent, parent)
        self.assertIsNone(parent.parent)
        self.assertIs(child.bean_factory.parent_bean_factory, parent.bean_factory)
        child.close()
        parent.close()


class TestContainerIdentity(unittest.TestCase):
    """Tests for id, names, startup date and the autowire capable factory"""

    def test_default_id_is_unique(self):
        first = BeanInjectionCore()
        second = BeanInjectionCore()

        self.assertTrue(first.id.startswith("BeanInjectionCore@"))
        self.assertNotEqual(first.id, second.id)

    def test_explicit_names(self):
        app = BeanInjectionCore(container_id="orders", application_name="shop",
                                display_name="Order service")

        self.assertEqual(app.id, "orders")
        self.assertEqual(app.application_name, "shop")
        self.assertEqual(app.display_name, "Order service")

    def test_display_name_defaults_to_id(self):
        app = BeanInjectionCore(container_id="orders")

        self.assertEqual(app.display_name, "orders")
        self.assertEqual(app.application_name, "")

    def test_startup_date(self):
        before = time.time()
        app = BeanInjectionCore()
        after = time.time()

        self.assertTrue(before <= app.startup_date <= after)

    def test_autowire_capable_bean_factory(self):
        with BeanInjectionCore(modules=[create_simple_module(Database, CacheService)]) as app:
            factory = app.autowire_capable_bean_factory

            self.assertIsInstance(factory, AutowireCapableBeanResolver)
            repo = factory.create_bean(UserRepository)
            self.assertIs(repo.db, app.get[Database]())
            self.assertFalse(app.bean_factory.contains_bean("userRepository"))


class TestClose(unittest.TestCase):
    """Tests for close() and the closed state"""

    def test_close_destroys_in_reverse_creation_order(self):
        log = EventLog()
        module = BeanInjectionModule()
        with module:
            module.single[Closeable](name="first", args=(log, "first"), destroy_method="close")
            module.single[Closeable](name="second", args=(log, "second"), destroy_method="close")

        app = BeanInjectionCore(modules=[module])
        app.close()

        self.assertEqual(log.events, ["close:second", "close:first"])

    def test_close_is_idempotent(self):
        log = EventLog()
        module = BeanInjectionModule()
        with module:
            module.single[Closeable](args=(log, "pool"), destroy_method="close")

        app = BeanInjectionCore(modules=[module])
        app.close()
        app.close()

        self.assertTrue(app.is_closed)
        self.assertEqual(log.events, ["close:pool"])

    def test_context_manager_closes(self):
        with BeanInjectionCore(modules=[create_simple_module(Database)]) as app:
            self.assertFalse(app.is_closed)

        self.assertTrue(app.is_closed)

    def test_closed_container_rejects_access(self):
        app = BeanInjectionCore(modules=[create_simple_module(Database)])
        app.close()

        with self.assertRaises(ContainerClosedError):
            app.get[Database]()
        with self.assertRaises(ContainerClosedError):
            app.get_bean("database")
        with self.assertRaises(ContainerClosedError):
            app.create_scope("request", "req-1")
        with self.assertRaises(ContainerClosedError):
            app.autowire_capable_bean_factory

    def test_closed_error_message(self):
        app = BeanInjectionCore()
        app.close()

        with self.assertRaises(ContainerClosedError) as ctx:
            app.get_bean("database")

        self.assertIn("closed", str(ctx.exception))


if __name__ == '__main__':
    unittest.main()

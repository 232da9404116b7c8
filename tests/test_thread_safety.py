"""
Thread Safety Tests

Tests for concurrent use of a container: singletons are created exactly
once, resolution paths are per thread, and closed containers stay closed
for every thread.
"""

import concurrent.futures
import threading
import time
import unittest
from typing import List

from beaninjection import (
    BeanCreationError,
    BeanFactoryAware,
    BeanInjectionCore,
    BeanInjectionModule,
    ContainerClosedError,
    FactoryBean,
    LookupMode,
    Ref,
)

from conftest import BeanInjectionTestCase


class SlowDatabase:
    """Database whose construction takes a while and is counted."""

    instances = 0
    lock = threading.Lock()

    def __init__(self):
        time.sleep(0.05)
        with SlowDatabase.lock:
            SlowDatabase.instances += 1
        self.thread_id = threading.current_thread().ident


class Repository:
    """Repository with database dependency."""

    def __init__(self, db: SlowDatabase):
        time.sleep(0.01)
        self.db = db


class Session:
    """Product of SessionFactoryBean."""

    def __init__(self, db: SlowDatabase):
        self.db = db


class SessionFactoryBean(BeanFactoryAware, FactoryBean):
    """FactoryBean whose product looks up another singleton."""

    def set_bean_factory(self, bean_factory):
        self.bean_factory = bean_factory

    def get_object(self):
        time.sleep(0.05)
        return Session(self.bean_factory.get_bean("database"))

    @property
    def object_type(self):
        return Session


class SessionUser:
    def __init__(self, session: Session):
        self.session = session


class TestConcurrentSingletonCreation(BeanInjectionTestCase):
    """Concurrent first requests for a singleton."""

    def setUp(self):
        super().setUp()
        SlowDatabase.instances = 0

    def test_singleton_created_once_across_threads(self):
        """Every thread receives the same instance; the constructor runs once."""
        self.define("database", SlowDatabase)

        barrier = threading.Barrier(10)
        results: List[SlowDatabase] = []
        lock = threading.Lock()

        def resolve_in_thread():
            barrier.wait()
            db = self.factory.get_bean("database")
            with lock:
                results.append(db)

        threads = [threading.Thread(target=resolve_in_thread) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(results), 10)
        for db in results[1:]:
            self.assertIs(db, results[0], "Singleton should return same instance")
        self.assertEqual(SlowDatabase.instances, 1)

    def test_dependents_created_from_several_threads_share_dependency(self):
        """Threads starting at different beans of one graph do not deadlock."""
        self.define("database", SlowDatabase)
        self.define("repository", Repository, autowire=True)

        with concurrent.futures.ThreadPoolExecutor(max_workers=4) as executor:
            futures = [
                executor.submit(self.factory.get_bean, name)
                for name in ("repository", "database") * 4
            ]
            results = [f.result(timeout=10) for f in futures]

        repositories = [r for r in results if isinstance(r, Repository)]
        databases = [r for r in results if isinstance(r, SlowDatabase)]
        self.assertEqual(SlowDatabase.instances, 1)
        self.assertTrue(all(repo is repositories[0] for repo in repositories))
        self.assertTrue(all(repo.db is databases[0] for repo in repositories))

    def test_product_and_singleton_created_from_two_threads(self):
        """A product needing a singleton and a singleton needing the product do not deadlock."""
        self.define("database", SlowDatabase)
        self.define("session", SessionFactoryBean)

        def create_user():
            time.sleep(0.01)
            return SessionUser(self.factory.get_bean("session"))

        self.define("sessionUser", factory=create_user)
        self.factory.get_bean("session", mode=LookupMode.BY_NAME_UNWRAP_FACTORY)

        barrier = threading.Barrier(2)
        results = {}

        def resolve_in_thread(name):
            barrier.wait()
            results[name] = self.factory.get_bean(name)

        threads = [
            threading.Thread(target=resolve_in_thread, args=(name,), daemon=True)
            for name in ("session", "sessionUser")
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        self.assertFalse(any(t.is_alive() for t in threads), "Threads are still blocked")
        self.assertIs(results["sessionUser"].session, results["session"])
        self.assertEqual(SlowDatabase.instances, 1)

    def test_explicit_arguments_rejected_when_created_by_other_thread(self):
        """Arguments are refused when another thread wins the creation race."""
        started = threading.Event()

        class GatedReport:
            def __init__(self, period: str = "default"):
                started.set()
                time.sleep(0.1)
                self.period = period

        self.define("report", GatedReport)
        creator = threading.Thread(target=self.factory.get_bean, args=("report",))
        creator.start()
        self.assertTrue(started.wait(timeout=5))

        with self.assertRaises(BeanCreationError) as ctx:
            self.factory.get_bean("report", "2025-Q1")
        creator.join(timeout=5)

        self.assertIn("Explicit arguments", str(ctx.exception))
        self.assertEqual(self.factory.get_bean("report").period, "default")


class TestResolutionPathIsolation(BeanInjectionTestCase):
    """Resolution paths are tracked per thread."""

    def test_concurrent_prototypes_do_not_report_false_cycles(self):
        """The same prototype resolved in parallel is not a circular reference."""
        self.define("database", SlowDatabase, scope="prototype")
        self.define("repository", Repository, scope="prototype", args=(Ref("database"),))

        errors: List[Exception] = []
        results: List[Repository] = []
        lock = threading.Lock()

        def resolve_in_thread():
            try:
                repo = self.factory.get_bean("repository")
                with lock:
                    results.append(repo)
            except Exception as e:
                with lock:
                    errors.append(e)

        threads = [threading.Thread(target=resolve_in_thread) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(errors), 0, f"Errors occurred: {errors}")
        self.assertEqual(len(results), 8)
        self.assertEqual(len({id(repo.db) for repo in results}), 8)


class TestThreadSafetyIsolatedContainer(unittest.TestCase):
    """Application containers used from several threads."""

    def test_multiple_isolated_containers_thread_safety(self):
        """Multiple containers keep their own singletons."""
        module1 = BeanInjectionModule(lazy=True)
        with module1:
            module1.single[SlowDatabase]()

        module2 = BeanInjectionModule(lazy=True)
        with module2:
            module2.single[SlowDatabase]()

        app1 = BeanInjectionCore(modules=[module1])
        app2 = BeanInjectionCore(modules=[module2])

        results1: List[SlowDatabase] = []
        results2: List[SlowDatabase] = []
        lock = threading.Lock()

        def resolve_from_app1():
            db = app1.get[SlowDatabase]()
            with lock:
                results1.append(db)

        def resolve_from_app2():
            db = app2.get[SlowDatabase]()
            with lock:
                results2.append(db)

        threads = []
        for _ in range(5):
            threads.append(threading.Thread(target=resolve_from_app1))
            threads.append(threading.Thread(target=resolve_from_app2))

        for t in threads:
            t.start()
        for t in threads:
            t.join()

        app1.close()
        app2.close()

        self.assertEqual(len(results1), 5)
        self.assertEqual(len(results2), 5)
        self.assertTrue(all(db is results1[0] for db in results1))
        self.assertIsNot(results1[0], results2[0], "Different containers should have different singletons")

    def test_closed_container_get_raises_error(self):
        """Closed container raises error when accessed from any thread."""
        module = BeanInjectionModule(lazy=True)
        with module:
            module.single[SlowDatabase]()

        app = BeanInjectionCore(modules=[module])
        app.close()

        errors: List[Exception] = []
        lock = threading.Lock()

        def try_resolve():
            try:
                app.get[SlowDatabase]()
            except Exception as e:
                with lock:
                    errors.append(e)

        threads = [threading.Thread(target=try_resolve) for _ in range(5)]

        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(errors), 5)
        self.assertTrue(all(isinstance(e, ContainerClosedError) for e in errors))


if __name__ == '__main__':
    unittest.main()

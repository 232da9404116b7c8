"""
Test Fixtures

Common test classes used across test modules
"""

from typing import Optional

from beaninjection import (
    BeanFactoryAware,
    BeanNameAware,
    BeanPostProcessor,
    DisposableBean,
    FactoryBean,
    InitializingBean,
)


class Database:
    """Test database class"""

    def __init__(self):
        self.name = "TestDB"
        self.closed = False

    def close(self):
        self.closed = True


class CacheService:
    """Test cache service"""

    def __init__(self):
        self.cache = {}


class UserRepository:
    """Test repository with dependencies"""

    def __init__(self, db: Database, cache: CacheService):
        self.db = db
        self.cache = cache


class CounterService:
    """Service with mutable state for testing singleton behavior"""

    def __init__(self):
        self.counter = 0

    def increment(self):
        self.counter += 1
        return self.counter


class ServiceWithoutHint:
    """Service with missing type hint - for error testing"""

    def __init__(self, dependency):  # No type hint!
        self.dependency = dependency


class ServiceWithOptionalDependency:
    """Service whose dependency may be missing"""

    def __init__(self, cache: Optional[CacheService]):
        self.cache = cache


class Level1:
    """First level of nested dependencies"""
    pass


class Level2:
    """Second level of nested dependencies"""

    def __init__(self, l1: Level1):
        self.l1 = l1


class Level3:
    """Third level of nested dependencies"""

    def __init__(self, l2: Level2):
        self.l2 = l2


class Level4:
    """Fourth level of nested dependencies"""

    def __init__(self, l3: Level3):
        self.l3 = l3


# Constructor-level cycle
class ServiceA:
    def __init__(self, b: 'ServiceB'):
        self.b = b


class ServiceB:
    def __init__(self, a: ServiceA):
        self.a = a


class Node:
    """Bean wired through properties, for property-level cycles"""

    def __init__(self):
        self.peer = None


class Report:
    """Prototype with constructor arguments"""

    def __init__(self, period: str, fmt: str = "pdf"):
        self.period = period
        self.fmt = fmt


class Connection:
    """Product of ConnectionFactoryBean"""

    def __init__(self, url: str):
        self.url = url


class ConnectionFactoryBean(FactoryBean):
    """FactoryBean with a known product type"""

    created = 0

    def __init__(self, url: str = "sqlite://"):
        self.url = url

    def get_object(self):
        ConnectionFactoryBean.created += 1
        return Connection(self.url)

    @property
    def object_type(self):
        return Connection


class PooledConnectionFactoryBean(ConnectionFactoryBean):
    """FactoryBean producing a new Connection per lookup"""

    @property
    def is_singleton(self):
        return False


class OpaqueFactoryBean(FactoryBean):
    """FactoryBean that only knows its product type after creation"""

    def __init__(self):
        self.product = Connection("opaque://")

    def get_object(self):
        return self.product

    @property
    def object_type(self):
        return None


class LifecycleBean(BeanNameAware, BeanFactoryAware, InitializingBean, DisposableBean):
    """Records every lifecycle callback it receives into ``log``"""

    def __init__(self, log):
        self.log = log
        self.log.record("construct")
        self._value = None

    @property
    def value(self):
        return self._value

    @value.setter
    def value(self, value):
        self.log.record("property")
        self._value = value

    def set_bean_name(self, name):
        self.log.record(f"name:{name}")

    def set_bean_factory(self, bean_factory):
        self.log.record("factory")

    def after_properties_set(self):
        self.log.record("after_properties_set")

    def custom_init(self):
        self.log.record("custom_init")

    def destroy(self):
        self.log.record("destroy")

    def custom_destroy(self):
        self.log.record("custom_destroy")


class RecordingPostProcessor(BeanPostProcessor):
    """Post-processor recording the hooks it sees"""

    def __init__(self, log, tag: str = "pp"):
        self.log = log
        self.tag = tag

    def before_init(self, bean, bean_name):
        self.log.record(f"{self.tag}.before_init:{bean_name}")
        return bean

    def after_init(self, bean, bean_name):
        self.log.record(f"{self.tag}.after_init:{bean_name}")
        return bean

    def before_destroy(self, bean, bean_name):
        self.log.record(f"{self.tag}.before_destroy:{bean_name}")


class Closeable:
    """Bean whose close() is recorded, optionally failing"""

    def __init__(self, log, name: str, fail: bool = False):
        self.log = log
        self.name = name
        self.fail = fail

    def close(self):
        self.log.record(f"close:{self.name}")
        if self.fail:
            raise RuntimeError(f"{self.name} failed to close")

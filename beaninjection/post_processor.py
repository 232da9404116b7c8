"""
BeanPostProcessor

Container-wide hooks around the initialization and destruction of every bean
"""

from typing import Any, Optional


class BeanPostProcessor:
    """Hook into bean initialization and destruction.

    Processors run in registration order for every bean the container
    creates:

    - ``before_init``: after awareness callbacks, before the init method
    - ``after_init``: after the init method
    - ``before_destroy``: before the bean's own destroy callbacks

    ``before_init`` and ``after_init`` may return a replacement bean;
    returning None keeps the current one.

    Example::

        class TimingPostProcessor(BeanPostProcessor):
            def after_init(self, bean, bean_name):
                logger.info(f"{bean_name} ready")
                return bean
    """

    def before_init(self, bean: Any, bean_name: str) -> Optional[Any]:
        return bean

    def after_init(self, bean: Any, bean_name: str) -> Optional[Any]:
        return bean

    def before_destroy(self, bean: Any, bean_name: str) -> None:
        pass

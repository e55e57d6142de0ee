"""Class registry: turns a wire class name into something instantiable.

The reader never imports or loads classes by itself.  It asks a registry
(anything implementing ``ClassRegistry``) to resolve a name, instantiate
the result, and assign fields by name.  ``ClassManager`` is the default:
an alias table that falls back to creating a plain class on the fly.
"""

from __future__ import annotations

import logging
import reprlib
import threading
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class ClassRegistry(Protocol):
    def resolve(self, name: str) -> Any:
        """Return an instantiable descriptor for the wire class ``name``."""
        ...

    def instantiate(self, cls: Any) -> Any:
        """Return a new, field-less instance of ``cls``."""
        ...

    def set_field(self, obj: Any, name: str, value: Any) -> None:
        ...


class DynamicObject:
    """Base for classes created for names nobody registered."""

    @reprlib.recursive_repr()
    def __repr__(self) -> str:
        fields = ", ".join("{}={!r}".format(k, v) for k, v in vars(self).items())
        return "{}({})".format(type(self).__name__, fields)


class ClassManager:
    """Thread-safe alias → class table shared by readers.

    Registered classes are instantiated without running ``__init__`` and
    filled with ``setattr``, so constructors with required arguments are
    fine.  Unregistered aliases get a ``DynamicObject`` subclass named after
    the alias, created once and reused.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_alias: Dict[str, type] = {}
        self._by_class: Dict[type, str] = {}

    def register(self, cls: type, alias: Optional[str] = None) -> None:
        alias = alias or cls.__name__
        with self._lock:
            self._by_alias[alias] = cls
            self._by_class[cls] = alias
        logger.debug("registered class %s as %r", cls.__qualname__, alias)

    def get_class(self, alias: str) -> Optional[type]:
        with self._lock:
            return self._by_alias.get(alias)

    def get_alias(self, cls: type) -> Optional[str]:
        with self._lock:
            return self._by_class.get(cls)

    def resolve(self, name: str) -> type:
        with self._lock:
            cls = self._by_alias.get(name)
            if cls is None:
                cls = type(name, (DynamicObject,), {"__module__": __name__})
                self._by_alias[name] = cls
                self._by_class[cls] = name
                logger.debug("created class for unregistered alias %r", name)
        return cls

    def instantiate(self, cls: type) -> Any:
        return cls.__new__(cls)

    def set_field(self, obj: Any, name: str, value: Any) -> None:
        setattr(obj, name, value)


class_manager = ClassManager()
"""Process-wide default registry used when a reader gets none."""

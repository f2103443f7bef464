"""
Type and function lookup for string callback references.

Handlers accept two string forms:
  - "name" refers to a free function;
  - "Type::method" refers to a type-level method, looked up by name every
    time the handler is invoked.

Both are answered by a TypeRegistry. ImportRegistry resolves dotted import
paths and is the default. MappingRegistry answers from an explicit table of
names, for consumers that want a closed set of callable names.
"""

import builtins
import inspect
import logging
import pkgutil
import types
from abc import ABC
from abc import abstractmethod
from typing import Any
from typing import Callable
from typing import Mapping
from typing import Optional

from callback_handler import exceptions


logger = logging.getLogger(__name__)


STATIC_SEPARATOR = "::"
"""Separates the type name from the method name in a static reference."""

_TYPE_LEVEL_DESCRIPTORS = (
    staticmethod,
    classmethod,
    types.ClassMethodDescriptorType,
)


def split_static_reference(reference: str) -> tuple[str, str]:
    """Split "Type::method" into its type and method names, on the first separator."""
    type_name, method_name = reference.split(STATIC_SEPARATOR, 1)
    return type_name, method_name


class TypeRegistry(ABC):
    """
    Read-only oracle answering questions about named types and functions.

    Subclasses only need to implement get_type() and get_function(). The
    remaining questions are answered through inspect, and may be overridden.
    """

    @abstractmethod
    def get_type(self, name: str) -> Optional[type]:
        """Return the type registered under name, or None."""

    @abstractmethod
    def get_function(self, name: str) -> Optional[Callable[..., Any]]:
        """Return the free function registered under name, or None."""

    def has_type(self, name: str) -> bool:
        return self.get_type(name) is not None

    def has_method(self, type_name: str, method_name: str) -> bool:
        """Does the named type define a callable attribute called method_name?"""
        cls = self.get_type(type_name)
        if cls is None:
            return False

        try:
            inspect.getattr_static(cls, method_name)
        except AttributeError:
            return False

        return callable(getattr(cls, method_name, None))

    def is_static(self, type_name: str, method_name: str) -> bool:
        """
        Can the named method be called without an instance?
        Static methods and class methods both qualify.
        """
        cls = self.get_type(type_name)
        if cls is None:
            return False

        try:
            attribute = inspect.getattr_static(cls, method_name)
        except AttributeError:
            return False

        return isinstance(attribute, _TYPE_LEVEL_DESCRIPTORS)


class ImportRegistry(TypeRegistry):
    """
    Resolves names as import paths, e.g. "datetime.datetime", "os.path.join"
    or "package.module:Class". Bare names fall back to the builtins namespace.
    """

    @staticmethod
    def _resolve(name: str) -> Any:
        if not name:
            return None

        if "." not in name and ":" not in name and hasattr(builtins, name):
            return getattr(builtins, name)

        try:
            return pkgutil.resolve_name(name)
        except (ImportError, AttributeError, ValueError) as e:
            logger.debug(f"Could not resolve '{name}': {e}")
            return None

    def get_type(self, name: str) -> Optional[type]:
        obj = self._resolve(name)
        if inspect.isclass(obj):
            return obj
        return None

    def get_function(self, name: str) -> Optional[Callable[..., Any]]:
        obj = self._resolve(name)
        if obj is None or inspect.isclass(obj) or not callable(obj):
            return None
        return obj


class MappingRegistry(TypeRegistry):
    """Answers lookups from explicitly registered names only."""

    def __init__(
        self,
        types_: Optional[Mapping[str, type]] = None,
        functions: Optional[Mapping[str, Callable[..., Any]]] = None,
    ) -> None:
        self._types: dict[str, type] = dict(types_ or {})
        self._functions: dict[str, Callable[..., Any]] = dict(functions or {})

    def register_type(self, cls: type, name: Optional[str] = None) -> None:
        """Register cls under name, defaulting to its __name__."""
        self._types[name or cls.__name__] = cls

    def register_function(
        self, function: Callable[..., Any], name: Optional[str] = None
    ) -> None:
        """Register function under name, defaulting to its __name__."""
        self._functions[name or function.__name__] = function

    def unregister(self, name: str) -> None:
        """Remove a type or function name. Unknown names are ignored."""
        self._types.pop(name, None)
        self._functions.pop(name, None)

    def get_type(self, name: str) -> Optional[type]:
        return self._types.get(name)

    def get_function(self, name: str) -> Optional[Callable[..., Any]]:
        return self._functions.get(name)


DEFAULT_REGISTRY: TypeRegistry = ImportRegistry()
"""Registry used by handlers that were not given one."""


def validate_static_reference(reference: str, registry: TypeRegistry) -> bool:
    """
    Validate that a "Type::method" reference can be called statically.

    A reference without a separator names a free function and is always
    valid here.

    Args:
        reference (str): The string reference to check.
        registry (TypeRegistry): The oracle used to look the names up.
    Returns:
        bool: True when the reference is valid.
    Raises:
        UnknownTypeError: If the type does not exist.
        UnknownMethodError: If the type has no such method.
        NotStaticError: If the method requires an instance.
    """
    if STATIC_SEPARATOR not in reference:
        return True

    type_name, method_name = split_static_reference(reference)

    if not registry.has_type(type_name):
        raise exceptions.UnknownTypeError(reference, type_name, method_name)

    if not registry.has_method(type_name, method_name):
        raise exceptions.UnknownMethodError(reference, type_name, method_name)

    if not registry.is_static(type_name, method_name):
        raise exceptions.NotStaticError(reference, type_name, method_name)

    return True

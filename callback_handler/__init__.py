"""
# Callback Handler

Wraps a single callable - function, bound method, callable object or
"Type::method" reference - together with read-only metadata such as a
priority, validates it when registered, and invokes it later on demand.

Bound methods and callable objects are held through weak references, so a
handler never keeps the owning object alive. Invoking a handler whose owner
has been collected raises TargetExpiredError.

Storing collections of handlers and interpreting their metadata is left to
the event managers, filter chains and plugin registries that use them.
"""

from callback_handler import config
from callback_handler import exceptions
from callback_handler import registry
from callback_handler import targets
from callback_handler.config import get_flag_states
from callback_handler.config import set_flag_states
from callback_handler.exceptions import CallbackError
from callback_handler.exceptions import InvalidCallbackError
from callback_handler.exceptions import InvalidStaticReferenceError
from callback_handler.exceptions import NotStaticError
from callback_handler.exceptions import TargetExpiredError
from callback_handler.exceptions import UnknownMethodError
from callback_handler.exceptions import UnknownTypeError
from callback_handler.handler import CallbackHandler
from callback_handler.registry import DEFAULT_REGISTRY
from callback_handler.registry import ImportRegistry
from callback_handler.registry import MappingRegistry
from callback_handler.registry import TypeRegistry
from callback_handler.registry import validate_static_reference


version_major = 1
version_minor = 0
version_patch = 0
__version__ = f"{version_major}.{version_minor}.{version_patch}"

__all__ = [
    "CallbackError",
    "CallbackHandler",
    "DEFAULT_REGISTRY",
    "ImportRegistry",
    "InvalidCallbackError",
    "InvalidStaticReferenceError",
    "MappingRegistry",
    "NotStaticError",
    "TargetExpiredError",
    "TypeRegistry",
    "UnknownMethodError",
    "UnknownTypeError",
    "config",
    "exceptions",
    "get_flag_states",
    "registry",
    "set_flag_states",
    "targets",
    "validate_static_reference",
]

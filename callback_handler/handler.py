"""
The callback handler.

A CallbackHandler wraps a single invocable target together with a read-only
metadata mapping, e.g. a priority, so event managers, filter chains and plugin
registries can hold many deferred callbacks uniformly. Validation happens once
when the handler is created; invocation only resolves and calls.
"""

import logging
import types
import weakref
from typing import Any
from typing import Callable
from typing import Mapping
from typing import Optional
from typing import Sequence

from callback_handler import config
from callback_handler import exceptions
from callback_handler import registry as type_registry
from callback_handler import targets


logger = logging.getLogger(__name__)


ON_EXPIRED = Callable[["CallbackHandler"], None]
"""Signature of the hook called once a handler's owner has been collected."""


class CallbackHandler(object):
    """
    Stores a callback and its metadata for later, possibly repeated, calls.

    Accepted callbacks:
        - functions, lambdas, builtins, partials and classes;
        - bound methods and callable objects, whose owner is weakly held;
        - (owner, "method") pairs, where owner is an instance, a type or a
          type name;
        - "function" and "Type::method" names, resolved through a registry.

    Use call() with a sequence of arguments, or call the handler directly.
    """

    def __init__(
        self,
        callback: targets.CALLBACK,
        metadata: Optional[Mapping[str, Any]] = None,
        registry: Optional[type_registry.TypeRegistry] = None,
        weak: Optional[bool] = None,
        on_expired: Optional[ON_EXPIRED] = None,
    ) -> None:
        """
        Args:
            callback (CALLBACK): The callback to store.
            metadata (Optional[Mapping[str, Any]]): Options used by whoever
                holds the handler, e.g. {"priority": 10}. Copied, then frozen.
            registry (Optional[TypeRegistry]): Resolves string callbacks.
                Defaults to an ImportRegistry.
            weak (Optional[bool]): Hold bound methods and callable objects
                weakly. Defaults to the weak_references flag state.
            on_expired (Optional[ON_EXPIRED]): Called with this handler once
                a weakly held owner has been garbage collected.
        Raises:
            InvalidCallbackError: If callback is not invocable.
        """
        self._metadata: Mapping[str, Any] = types.MappingProxyType(
            dict(metadata or {})
        )
        self._registry = registry or type_registry.DEFAULT_REGISTRY
        self._on_expired = on_expired

        if weak is None:
            weak = config.get_flag_states()["weak_references"]

        # The collection hook must not keep the handler itself alive.
        handler_ref = weakref.ref(self)

        def on_collected() -> None:
            handler = handler_ref()
            # No target when validation failed after the reference was made.
            if handler is not None and hasattr(handler, "_target"):
                handler._notify_expired()

        self._target = targets.make_target(
            callback, self._registry, weak=weak, on_collected_callback=on_collected
        )

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} {self._target.name} "
            f"metadata={dict(self._metadata)!r}>"
        )

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        """Invoke as a function; equivalent to call(args, kwargs)."""
        return self.call(args, kwargs)

    # -----Target--------------------------------------------------------------

    @property
    def target(self) -> targets.TARGET:
        """The stored target form."""
        return self._target

    @property
    def registry(self) -> type_registry.TypeRegistry:
        return self._registry

    @property
    def callback(self) -> Optional[targets.CALLBACK]:
        """
        Get the live callback.

        Functions are returned as stored, static references as their
        "Type::method" string. Bound methods and callable objects are resolved
        from their weak reference, and give None once the owner is collected.

        Raises:
            InvalidCallbackError: If an (owner, "method") pair's attribute has
                been removed from the owner since construction.
        """
        return self._target.callback

    @property
    def expired(self) -> bool:
        """True once the weakly held owner has been collected."""
        return self._target.expired

    @property
    def is_weak(self) -> bool:
        """
        False if an object-owning callback is kept alive by this handler,
        either by request or because its owner cannot be weakly referenced.
        Functions and static references are always reported as not weak.
        """
        return self._target.is_weak

    @property
    def is_async(self) -> bool:
        """Whether invoking the callback returns an awaitable coroutine."""
        return self._target.is_async

    def _notify_expired(self) -> None:
        logger.debug(f"Owner of {self._target.name} was garbage collected")
        if self._on_expired is not None:
            self._on_expired(self)

    def _resolve_static(self, reference: str) -> Callable[..., Any]:
        type_registry.validate_static_reference(reference, self._registry)
        type_name, method_name = type_registry.split_static_reference(reference)
        return getattr(self._registry.get_type(type_name), method_name)

    # -----Invocation----------------------------------------------------------

    def call(
        self,
        args: Sequence[Any] = (),
        kwargs: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Invoke the callback with args, in order, and return its result as is.

        Args:
            args (Sequence[Any]): Positional arguments to pass.
            kwargs (Optional[Mapping[str, Any]]): Keyword arguments to pass.
        Returns:
            Any: Whatever the callback returns. Coroutines are not awaited.
        Raises:
            TargetExpiredError: If the weakly held owner was collected.
            InvalidStaticReferenceError: If a "Type::method" reference no longer
                names a static method.
            InvalidCallbackError: If an (owner, "method") pair's attribute was
                removed from the owner.
        Notes:
            Exceptions raised by the callback itself propagate unchanged.
        """
        callback = self._target.callback

        if callback is None:
            raise exceptions.TargetExpiredError(
                f"Callback {self._target.name} is no longer available; "
                f"its owner was garbage collected"
            )

        if isinstance(callback, str):
            callback = self._resolve_static(callback)

        if kwargs:
            return callback(*args, **kwargs)

        # Minor performance tweak; skip argument unpacking until > 3
        # arguments reached.
        count = len(args)
        if count == 0:
            return callback()
        elif count == 1:
            return callback(args[0])
        elif count == 2:
            return callback(args[0], args[1])
        elif count == 3:
            return callback(args[0], args[1], args[2])
        else:
            return callback(*args)

    # -----Metadata------------------------------------------------------------

    @property
    def metadata(self) -> Mapping[str, Any]:
        return self._metadata

    def get_metadata(self) -> Mapping[str, Any]:
        """Get all callback metadata as a read-only mapping."""
        return self._metadata

    def get_metadatum(self, name: str, default: Any = None) -> Any:
        """
        Retrieve a single metadatum.

        Args:
            name (str): The metadata key.
            default (Any): Returned when the key is not present.
        Returns:
            Any: The stored value, or default.
        """
        return self._metadata.get(name, default)

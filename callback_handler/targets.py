"""
Stored target forms for callback handlers.

Whatever invocable a handler is given gets classified exactly once, at
construction, into one of three frozen forms:

  - FunctionTarget: functions, lambdas, builtins, partials and classes. These
    own no object, so they are held strongly.
  - BoundMethodTarget: anything tied to a live instance, such as bound methods,
    (owner, "method") pairs and callable objects. The owner is held through a
    weak reference so the handler never keeps it alive.
  - StaticMethodTarget: a "Type::method" reference, looked up by name through
    a registry every time it is invoked.

Invocation never has to sniff the shape of the callback again.
"""

import functools
import inspect
import logging
import types
import warnings
import weakref
from dataclasses import dataclass
from typing import Any
from typing import Callable
from typing import Optional
from typing import Union

from callback_handler import config
from callback_handler import exceptions
from callback_handler import registry


logger = logging.getLogger(__name__)


CALLBACK = Union[Callable[..., Any], str, tuple[Any, str], list[Any]]
"""
Anything a handler accepts: a callable, a "function" or "Type::method" name,
or an (owner, "method") pair where owner is an instance, a type or a type name.
"""

_PLAIN_CALLABLES = (
    types.FunctionType,
    types.MethodType,
    types.BuiltinFunctionType,
    types.MethodWrapperType,
    types.MethodDescriptorType,
    types.WrapperDescriptorType,
    types.ClassMethodDescriptorType,
    functools.partial,
    type,
)


def get_callable_name(callable_: Any) -> str:
    """
    Returns the name of the callable, using class name for items bound to an
    instance, __qualname__ or __name__ for anything that has one, or
    str(callable_) if neither are found.
    """
    if isinstance(callable_, str):
        return callable_
    elif isinstance(callable_, (tuple, list)) and len(callable_) == 2:
        owner, method_name = callable_
        if isinstance(owner, str):
            return f"{owner}{registry.STATIC_SEPARATOR}{method_name}"
        elif inspect.isclass(owner):
            return f"{owner.__name__}.{method_name}"
        return f"{owner.__class__.__name__}.{method_name}"
    elif _bound_owner(callable_) is not None:
        return f"{callable_.__self__.__class__.__name__}.{callable_.__name__}"
    elif hasattr(callable_, "__qualname__"):
        return callable_.__qualname__
    elif hasattr(callable_, "__name__"):
        return callable_.__name__
    elif isinstance(callable_, functools.partial):
        return f"partial({get_callable_name(callable_.func)})"
    elif callable(callable_):
        return f"{callable_.__class__.__name__}.__call__"
    else:
        return str(callable_)


def _bound_owner(callable_: Any) -> Optional[Any]:
    """Return the instance a method is bound to, or None for unbound callables."""
    owner = getattr(callable_, "__self__", None)
    if owner is None or inspect.ismodule(owner) or inspect.isclass(owner):
        return None
    return owner


def _is_async(callable_: Any) -> bool:
    """Whether calling callable_ returns a coroutine, callable objects included."""
    return inspect.iscoroutinefunction(callable_) or inspect.iscoroutinefunction(
        getattr(type(callable_), "__call__", None)
    )


# -----Target Forms------------------------------------------------------------


@dataclass(frozen=True)
class FunctionTarget(object):
    """A callable that owns no instance."""

    function: Callable[..., Any]
    """The stored callable. Held strongly."""

    name: str
    """Display name, or the name it was registered under."""

    is_async: bool
    """Whether calling the function returns a coroutine."""

    is_weak = False
    expired = False

    @property
    def callback(self) -> Callable[..., Any]:
        return self.function


@dataclass(frozen=True)
class BoundMethodTarget(object):
    """A method or callable object tied to a live owner."""

    weak_callback: "_OwnerReference"
    """
    Resolves to the bound method or callable object.
    Unless is_weak is False this does not keep the owner alive.
    """

    owner_name: str
    """Class name of the owner, kept for display after it is collected."""

    method_name: str
    """Name of the method on the owner. "__call__" for callable objects."""

    is_weak: bool
    """False when the owner had to be stored strongly."""

    is_async: bool

    @property
    def name(self) -> str:
        return f"{self.owner_name}.{self.method_name}"

    @property
    def callback(self) -> Optional[Callable[..., Any]]:
        """
        Get the live callback, or None if the owner was collected.
        Raises InvalidCallbackError if a looked up attribute is gone.
        """
        return self.weak_callback()

    @property
    def expired(self) -> bool:
        """Whether the owner was collected. Never resolves the method."""
        return self.weak_callback.owner_ref() is None


@dataclass(frozen=True)
class StaticMethodTarget(object):
    """A "Type::method" reference resolved through a registry on each call."""

    reference: str
    type_name: str
    method_name: str
    is_async: bool

    is_weak = False
    expired = False

    @property
    def name(self) -> str:
        return self.reference

    @property
    def callback(self) -> str:
        return self.reference


TARGET = Union[FunctionTarget, BoundMethodTarget, StaticMethodTarget]


# -----References--------------------------------------------------------------


class _OwnerReference(object):
    """
    Resolves to the owner itself, used for callable objects. Subclasses bind
    something to the owner instead.
    """

    __slots__ = ("owner_ref",)

    def __init__(self, owner_ref: Callable[[], Optional[Any]]) -> None:
        self.owner_ref = owner_ref

    def __call__(self) -> Optional[Callable[..., Any]]:
        owner = self.owner_ref()
        if owner is None:
            return None
        return self._bind(owner)

    def _bind(self, owner: Any) -> Callable[..., Any]:
        return owner


class _MethodReference(_OwnerReference):
    """Rebinds a strongly held function to the referenced owner."""

    __slots__ = ("function",)

    def __init__(
        self, owner_ref: Callable[[], Optional[Any]], function: Callable[..., Any]
    ) -> None:
        super().__init__(owner_ref)
        self.function = function

    def _bind(self, owner: Any) -> Callable[..., Any]:
        return types.MethodType(self.function, owner)


class _AttributeReference(_OwnerReference):
    """Looks the method up by name on the referenced owner each time it is called."""

    __slots__ = ("method_name",)

    def __init__(
        self, owner_ref: Callable[[], Optional[Any]], method_name: str
    ) -> None:
        super().__init__(owner_ref)
        self.method_name = method_name

    def _bind(self, owner: Any) -> Callable[..., Any]:
        try:
            return getattr(owner, self.method_name)
        except AttributeError as e:
            raise exceptions.InvalidCallbackError(
                f"Invalid callback; {owner.__class__.__name__} no longer has "
                f"an attribute '{self.method_name}'"
            ) from e


class _StrongReference(object):
    """Stands in for a weak reference when the referent cannot be weakly held."""

    __slots__ = ("_referent",)

    def __init__(self, referent: Any) -> None:
        self._referent = referent

    def __call__(self) -> Any:
        return self._referent


def _bind_reference(
    callback: Any,
    owner_ref: Callable[[], Optional[Any]],
    method_name: Optional[str],
) -> _OwnerReference:
    if method_name is not None:
        return _AttributeReference(owner_ref, method_name)
    elif inspect.ismethod(callback):
        # Only the owner is weak; the function may have been built on access.
        return _MethodReference(owner_ref, callback.__func__)
    else:
        return _OwnerReference(owner_ref)


def _make_weak_ref(
    callback: Any,
    owner: Any,
    method_name: Optional[str],
    on_collected_callback: Optional[Callable[[], None]],
) -> _OwnerReference:
    """
    Create the appropriate weak reference for an object-owning callback.

    Raises TypeError when the owner does not support weak references.
    """

    def cleanup(_: Any) -> None:
        # Arg needed to add for weakref creation.
        if on_collected_callback is not None:
            on_collected_callback()

    return _bind_reference(callback, weakref.ref(owner, cleanup), method_name)


def _make_strong_ref(
    callback: Any, owner: Any, method_name: Optional[str]
) -> _OwnerReference:
    return _bind_reference(callback, _StrongReference(owner), method_name)


# -----Construction------------------------------------------------------------


def _invalid(callback: Any, reason: str) -> exceptions.InvalidCallbackError:
    return exceptions.InvalidCallbackError(
        f"Invalid callback provided; {get_callable_name(callback)} {reason}"
    )


def _make_string_target(reference: str, registry_: registry.TypeRegistry) -> TARGET:
    if registry.STATIC_SEPARATOR not in reference:
        function = registry_.get_function(reference)
        if function is None:
            raise _invalid(reference, "does not name a known function")
        return FunctionTarget(
            function=function, name=reference, is_async=_is_async(function)
        )

    type_name, method_name = registry.split_static_reference(reference)
    cls = registry_.get_type(type_name)
    if cls is None:
        raise _invalid(reference, "refers to a type that does not exist")

    method = getattr(cls, method_name, None)
    if not callable(method):
        raise _invalid(reference, "refers to a method that does not exist")

    return StaticMethodTarget(
        reference=reference,
        type_name=type_name,
        method_name=method_name,
        is_async=_is_async(method),
    )


def _make_owned_target(
    callback: Any,
    owner: Any,
    method_name: str,
    lookup: bool,
    weak: bool,
    on_collected_callback: Optional[Callable[[], None]],
) -> BoundMethodTarget:
    """
    Store a callback tied to owner. With lookup set, method_name is looked up
    on the owner on every resolution instead of the callback being kept.
    """
    resolved = getattr(owner, method_name) if lookup else callback
    flags = config.get_flag_states()
    lookup_name = method_name if lookup else None

    weak_callback: Optional[_OwnerReference] = None
    if weak:
        try:
            weak_callback = _make_weak_ref(
                callback, owner, lookup_name, on_collected_callback
            )
        except TypeError as e:
            if flags["require_weak_references"]:
                raise _invalid(callback, f"cannot be weakly referenced: {e}") from e

            if flags["warn_on_strong_reference"]:
                logger.warning(
                    f"Callback {get_callable_name(callback)} cannot be weakly "
                    f"referenced and will be kept alive by its handler: {e}"
                )

    is_weak = weak_callback is not None
    if weak_callback is None:
        weak_callback = _make_strong_ref(callback, owner, lookup_name)

    return BoundMethodTarget(
        weak_callback=weak_callback,
        owner_name=owner.__class__.__name__,
        method_name=method_name,
        is_weak=is_weak,
        is_async=_is_async(resolved),
    )


def _classify(
    callback: Any,
    registry_: registry.TypeRegistry,
    weak: bool,
    on_collected_callback: Optional[Callable[[], None]],
) -> TARGET:
    if isinstance(callback, str):
        return _make_string_target(callback, registry_)

    if isinstance(callback, (tuple, list)):
        if len(callback) != 2 or not isinstance(callback[1], str):
            raise _invalid(callback, "is not an (owner, method name) pair")

        owner, method_name = callback
        if isinstance(owner, str):
            return _make_string_target(
                f"{owner}{registry.STATIC_SEPARATOR}{method_name}", registry_
            )

        method = getattr(owner, method_name, None)
        if not callable(method):
            raise _invalid(callback, "refers to a method that does not exist")

        if inspect.isclass(owner) or inspect.ismodule(owner):
            return FunctionTarget(
                function=method,
                name=get_callable_name(callback),
                is_async=_is_async(method),
            )

        return _make_owned_target(
            callback, owner, method_name, True, weak, on_collected_callback
        )

    if not callable(callback):
        raise _invalid(callback, "is not callable")

    owner = _bound_owner(callback)
    if owner is not None:
        if inspect.ismethod(callback):
            return _make_owned_target(
                callback, owner, callback.__name__, False, weak, on_collected_callback
            )
        # Builtin methods and method wrappers, e.g. list.append on an instance.
        return _make_owned_target(
            callback, owner, callback.__name__, True, weak, on_collected_callback
        )

    if isinstance(callback, _PLAIN_CALLABLES):
        return FunctionTarget(
            function=callback,
            name=get_callable_name(callback),
            is_async=_is_async(callback),
        )

    # Callable object, the instance is its own owner.
    return _make_owned_target(
        callback, callback, "__call__", False, weak, on_collected_callback
    )


def make_target(
    callback: CALLBACK,
    registry_: registry.TypeRegistry,
    weak: bool = True,
    on_collected_callback: Optional[Callable[[], None]] = None,
) -> TARGET:
    """
    Validate a callback and store it in its target form.

    Any warning emitted or exception raised while inspecting the callback is
    turned into an InvalidCallbackError instead of escaping.

    warnings.catch_warnings swaps the process-wide warning filters while the
    callback is inspected, so handlers should not be constructed from several
    threads at once.

    Args:
        callback (CALLBACK): The callback to validate and store.
        registry_ (TypeRegistry): Resolves string references.
        weak (bool): Hold object-owning callbacks through weak references.
        on_collected_callback (Optional[Callable[[], None]]): Called without
            arguments once a weakly held owner is garbage collected.
    Returns:
        TARGET: The stored target.
    Raises:
        InvalidCallbackError: If the callback is not invocable.
    """
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            target = _classify(callback, registry_, weak, on_collected_callback)
        except exceptions.InvalidCallbackError:
            raise
        except Exception as e:
            raise exceptions.InvalidCallbackError(
                f"Invalid callback provided; inspecting {type(callback).__name__} "
                f"raised {e.__class__.__name__}: {e}"
            ) from e

    if caught:
        warning = caught[0]
        raise exceptions.InvalidCallbackError(
            f"Invalid callback provided; inspecting {type(callback).__name__} "
            f"raised {warning.category.__name__}: {warning.message}"
        )

    logger.debug(
        f"Stored {target.__class__.__name__} {target.name} (weak={target.is_weak})"
    )
    return target

"""
Exceptions raised by callback handlers.

Construction failures raise InvalidCallbackError. Invocation can raise
TargetExpiredError when a weakly referenced owner has been collected, or one
of the InvalidStaticReferenceError subclasses when a "Type::method" reference
no longer satisfies the static call contract. Anything the wrapped callable
raises itself is never wrapped in one of these.
"""


class CallbackError(Exception):
    """Base class for every error raised by the callback handler package."""


class InvalidCallbackError(CallbackError, TypeError):
    """Raised when the supplied callback is not invocable."""


class TargetExpiredError(CallbackError, ReferenceError):
    """Raised when invoking a handler whose weakly referenced owner is gone."""


class InvalidStaticReferenceError(InvalidCallbackError):
    """
    Raised when a "Type::method" reference cannot be called statically.

    Subclasses name which precondition failed.
    """

    reason = "is not a valid static method call"

    def __init__(self, reference: str, type_name: str, method_name: str) -> None:
        super().__init__(f'Static method call "{reference}" {self.reason}')
        self.reference = reference
        self.type_name = type_name
        self.method_name = method_name


class UnknownTypeError(InvalidStaticReferenceError):
    reason = "refers to a type that does not exist"


class UnknownMethodError(InvalidStaticReferenceError):
    reason = "refers to a method that does not exist"


class NotStaticError(InvalidStaticReferenceError):
    reason = "refers to a method that is not static"

"""
Commandeer handler contracts: shapes, validation, invocation.

A handler is called with up to two positional values:
- an Arguments carrier, unless the command declares NO_ARGUMENTS;
- the command's configuration instance, when it has one.

Shape is the resulting tagged union (BARE, ARGUMENTS, OPTIONS,
ARGUMENTS_OPTIONS). It is resolved once per command, the first time that
command is dispatched, and Shape.invoke() builds the call from it.

Validation (check)
- the function must be callable and inspectable;
- its signature must bind exactly the expected positional values, with no
  other required parameter left over;
- annotated parameters must name the exact expected type (Arguments, the
  configuration's class, Command for the post-resolution hook);
- the return annotation, when present, must be None, an exception type, or a
  union of those ("returns an error or nothing"). A tuple annotation means
  more than one return value and is rejected, as is any other type.

Any mismatch raises SignatureError: it is a defect in the command table, not a
user error, and is never turned into a dispatch result.
"""
import inspect
import types
import typing
from enum import Enum
from inspect import Parameter

from .arguments import NO_ARGUMENTS, Arguments
from .faults import SignatureError

_POSITIONAL = (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)


class Shape(Enum):
    """
    Calling convention of a handler: (takes arguments, takes options).
    """
    BARE = (False, False)
    ARGUMENTS = (True, False)
    OPTIONS = (False, True)
    ARGUMENTS_OPTIONS = (True, True)

    def __init__(self, arguments, options):
        self.takes_arguments = arguments
        self.takes_options = options

    @classmethod
    def of(cls, arguments, options):
        return cls((bool(arguments), bool(options)))

    def describe(self):
        parameters = []
        if self.takes_arguments:
            parameters.append("arguments")
        if self.takes_options:
            parameters.append("options")
        return "(%s)" % ", ".join(parameters)

    def invoke(self, handler, arguments, options):
        """
        Call handler with the values this shape takes, in order.
        """
        values = ()
        if self.takes_arguments:
            values += (arguments,)
        if self.takes_options:
            values += (options,)
        return handler(*values)


def describe(function):
    """
    Return a dotted, human-readable name for a function in messages.
    """
    name = getattr(function, "__qualname__", None) or getattr(type(function), "__qualname__", repr(function))
    if module := getattr(function, "__module__", None):
        return "%s.%s" % (module, name)
    return name


def _hints(function):
    try:
        return typing.get_type_hints(function)
    except (NameError, TypeError):
        # Unresolvable or absent annotations: only the arity is checked.
        return {}


def _returns_error(annotation):
    if annotation is None or annotation is type(None) or annotation is typing.NoReturn:
        return True
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        return all(map(_returns_error, typing.get_args(annotation)))
    return isinstance(annotation, type) and issubclass(annotation, BaseException)


def check(function, parameters, what, /):
    """
    Validate function against the expected positional parameters.

    Parameters
    - function: the handler or hook.
    - parameters: sequence of (label, type) pairs, in calling order.
    - what: description used in messages ("handler for command greet").

    Raises
    - SignatureError describing the expected versus actual shape.
    """
    expected = "(%s)" % ", ".join(label for label, _ in parameters)
    if not callable(function):
        raise SignatureError(
            "%s is not a function, it's %s" % (what, type(function).__qualname__),
            function=function, expected=expected, actual=type(function).__qualname__
        )
    name = describe(function)
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        raise SignatureError(
            "invalid %s: function %s cannot be inspected" % (what, name),
            function=function, expected=expected
        ) from None
    actual = str(signature)

    try:
        signature.bind(*(object() for _ in parameters))
    except TypeError:
        raise SignatureError(
            "invalid %s: function %s must accept %s, not %s" % (what, name, expected, actual),
            function=function, expected=expected, actual=actual
        ) from None

    hints = _hints(function)
    positionals = [parameter for parameter in signature.parameters.values() if parameter.kind in _POSITIONAL]
    for position, (parameter, (label, kind)) in enumerate(zip(positionals, parameters), 1):
        annotation = hints.get(parameter.name, typing.Any)
        if annotation is typing.Any or annotation is kind:
            continue
        raise SignatureError(
            "invalid %s: function %s must accept %s as its argument #%d (%s), not %s" % (
                what, name, kind.__qualname__, position, label, getattr(annotation, "__qualname__", annotation)
            ),
            function=function, expected=expected, actual=actual
        )

    if "return" not in hints:
        return
    annotation = hints["return"]
    if typing.get_origin(annotation) is tuple:
        raise SignatureError(
            "invalid %s: function %s must return 0 or 1 values, not %d" % (what, name, len(typing.get_args(annotation))),
            function=function, expected=expected, actual=actual
        )
    if not _returns_error(annotation):
        raise SignatureError(
            "invalid %s: function %s must return an exception or None, not %s" % (
                what, name, getattr(annotation, "__qualname__", annotation)
            ),
            function=function, expected=expected, actual=actual
        )


def resolve(command, /):
    """
    Validate a command's handler and return its Shape.
    """
    shape = Shape.of(command.arguments is not NO_ARGUMENTS, command.options is not None)
    parameters = []
    if shape.takes_arguments:
        parameters.append(("arguments", Arguments))
    if shape.takes_options:
        parameters.append(("options", type(command.options)))
    check(command.handler, parameters, "handler for command %s" % command.name)
    return shape


def outcome(function, value, /):
    """
    Check a value returned by a handler or hook at run time.

    Returns the value (None or an exception); anything else is a SignatureError.
    """
    if value is None or isinstance(value, Exception):
        return value
    raise SignatureError(
        "function %s must return an exception or None, but returned %s" % (describe(function), type(value).__qualname__),
        function=function, actual=type(value).__qualname__
    )


__all__ = (
    "Shape",
    "check",
    "resolve",
    "outcome",
    "describe",
)

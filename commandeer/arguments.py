"""
Commandeer positional arguments: declaration, validation, access.

Overview
- Argument: a declared positional parameter (name, help, optional).
- NO_ARGUMENTS: marker for commands that accept no positional tokens at all.
  It is distinct from declaring nothing (None), which performs no validation.
- check_order(): required arguments may never follow optional ones.
- Arguments: the runtime view handed to handlers: the leftover tokens after
  flag parsing plus a back-reference to the owning command, so values can be
  looked up by their declared names.

Validation rules (Arguments.validate)
- NO_ARGUMENTS and at least one token              → UnusedArgumentsError
- fewer tokens than required (non-optional) args   → InsufficientArgumentsError
- a required argument after an optional one        → ValueError (programming error)
Extra tokens beyond the declared arguments are accepted and stay reachable via
Arguments.values.

Quick example:
    >>> from commandeer import Argument, Command
    >>> greet = Command("greet", handler, arguments=[
    ...     Argument("name", help="who to greet"),
    ...     Argument("greeting", help="what to say", optional=True),
    ... ])
"""
from typing import final

from .faults import *
from .utils import *


@final
class NoArgumentsType:
    """
    Sentinel type of NO_ARGUMENTS (singleton, falsy, iterates as empty).
    """
    __slots__ = ()

    def __new__(cls):
        try:
            return NO_ARGUMENTS
        except NameError:
            return super().__new__(cls)

    def __iter__(self):
        return iter(())

    def __len__(self):
        return 0

    def __repr__(self):
        return "NO_ARGUMENTS"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'NoArgumentsType' is not an acceptable base type")


NO_ARGUMENTS = NoArgumentsType()


class Argument(metaclass=SpecType):
    """
    A declared positional argument.

    name is used by Arguments.string()/integer() and by help output; help is
    a one-line description; optional arguments may be omitted by the user and
    must come after every required one.
    """
    __introspectable__ = (
        "name",
        "help",
        "optional",
    )

    def __init__(self, name, /, help="", optional=False):
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{type(self).__typename__} 'name' cannot be empty")
        if not isinstance(help, str):
            raise TypeError(f"{type(self).__typename__} 'help' must be a string")
        if not isinstance(optional, bool):
            raise TypeError(f"{type(self).__typename__} 'optional' must be a boolean")
        self._name = name
        self._help = help.strip()
        self._optional = optional


def check_order(arguments, /):
    """
    Reject argument sequences where a required argument follows an optional one.

    Raises
    - ValueError naming the first misplaced argument.
    """
    optional = False
    for argument in arguments or ():
        if argument.optional:
            optional = True
        elif optional:
            raise ValueError("required argument %r comes after optional arguments" % argument.name)


class Arguments:
    """
    Positional tokens handed to a handler, addressable by declared name.

    Access
    - values                 all leftover tokens, as given
    - string(name)           token at the declared position of name, or ""
    - string_at(index)       token at index, or "" past the end
    - integer(name)          string(name) parsed as int (ValueError otherwise)
    - len()/iteration/indexing over values; indexing by str is string(name)
    """

    def __init__(self, values, command, /):
        self._values = tuple(values)
        self._command = command

    @property
    def values(self):
        return self._values

    @property
    def command(self):
        return self._command

    def __len__(self):
        return len(self._values)

    def __iter__(self):
        return iter(self._values)

    def __getitem__(self, key):
        if isinstance(key, str):
            return self.string(key)
        return self._values[key]

    def __repr__(self):
        return "arguments(command=%r, values=%r)" % (self._command.name, self._values)

    def _position(self, name):
        for index, argument in enumerate(self._command.arguments or ()):
            if argument.name == name:
                return index
        raise KeyError("argument %r not found" % name)

    def string(self, name, /):
        """
        Return the token given for the argument declared as name.

        Missing tokens (optional arguments) read as ""; an undeclared name
        raises KeyError.
        """
        return self.string_at(self._position(name))

    def string_at(self, index, /):
        if index < 0:
            raise IndexError("argument position must be non-negative")
        if index >= len(self._values):
            return ""
        return self._values[index]

    def integer(self, name, /):
        """
        Return the argument declared as name parsed as an int.

        Raises
        - KeyError for an undeclared name.
        - ValueError when the token is missing or not an integer.
        """
        text = self.string(name)
        try:
            return int(text)
        except ValueError:
            raise ValueError("error parsing int argument %s: %r is not an integer" % (name, text)) from None

    def validate(self):
        """
        Check the tokens against the command's argument contract.

        Raises
        - UnusedArgumentsError, InsufficientArgumentsError (user errors).
        - ValueError when the contract itself is malformed.
        """
        declared = self._command.arguments
        if declared is NO_ARGUMENTS:
            if self._values:
                raise UnusedArgumentsError(
                    "command %s does not accept any arguments" % self._command.name,
                    title="unused arguments",
                    code=FaultCode.UNUSED_ARGUMENTS,
                    hint="remove %s" % " ".join(map(repr, self._values)),
                    command=self._command.name,
                    values=self._values,
                    docs=getdoc(FaultCode.UNUSED_ARGUMENTS),
                )
            return
        check_order(declared)
        required = sum(not argument.optional for argument in declared or ())
        if required > (provided := len(self._values)):
            missing = [argument.name for argument in declared if not argument.optional][provided:]
            raise InsufficientArgumentsError(
                "%d arguments required, but only %d provided" % (required, provided),
                title="missing arguments",
                code=FaultCode.INSUFFICIENT_ARGUMENTS,
                hint="add %s; see 'help %s'" % (", ".join(missing), self._command.name),
                command=self._command.name,
                required=required,
                provided=provided,
                docs=getdoc(FaultCode.INSUFFICIENT_ARGUMENTS),
            )


__all__ = (
    "NoArgumentsType",
    "NO_ARGUMENTS",
    "Argument",
    "Arguments",
    "check_order",
)

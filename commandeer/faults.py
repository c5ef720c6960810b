"""
Commandeer faults (user errors, programming errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues.
  Codes are grouped by domain to keep copy consistent and make logs/searches
  predictable.
- CommandException: base type for user errors. Carries message + options and
  knows how to render itself (rich) on the diagnostic stream. Every dispatch
  outcome that is not a success is one of these (or an exception returned by
  a handler).
- ConfigurationError / SignatureError: programming errors in the host
  application's command table. They are raised, never returned, and the
  dispatcher does not catch them.
- trigger(): central entry point to surface a fault on the diagnostic stream.
- getdoc(): optional description lookup for a code from the host application.

Exit statuses
- Each CommandException subclass declares __status__, the process exit status
  used by commands.exit(): help shown → 2, no command → 3, unused arguments → 4,
  anything else → 1.

Integration
- The dispatcher builds faults with title/code/hint context, calls
  trigger(fault, colorful=..., fancy=...) to print them and returns them to its
  caller.
"""
import copy
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, UnsetType, program

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the dispatcher (stable identifiers).

    grouping (by high-level domain)
    - routing (111xx)
      • NO_COMMAND, UNKNOWN_COMMAND
    - flags (112xx)
      • MALFORMED_FLAG, UNKNOWN_FLAG, MISSING_FLAG_VALUE, INVALID_FLAG_VALUE
    - positionals (113xx)
      • UNUSED_ARGUMENTS, INSUFFICIENT_ARGUMENTS
    - execution (114xx)
      • COMMAND_FAILED, COMMAND_PANIC
    - help (119xx)
      • HELP_SHOWN
    """
    # --- routing (111xx) ---
    NO_COMMAND                  = 11101
    UNKNOWN_COMMAND             = 11102

    # --- flags (112xx) ---
    MALFORMED_FLAG              = 11211
    UNKNOWN_FLAG                = 11212
    MISSING_FLAG_VALUE          = 11213
    INVALID_FLAG_VALUE          = 11214

    # --- positionals (113xx) ---
    UNUSED_ARGUMENTS            = 11321
    INSUFFICIENT_ARGUMENTS      = 11322

    # --- execution (114xx) ---
    COMMAND_FAILED              = 11431
    COMMAND_PANIC               = 11432

    # --- help (119xx) ---
    HELP_SHOWN                  = 11901

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    a user error produced by a dispatch run.

    options (all optional)
    - title, code, hint, docs: rendering context (see __rich__).
    - colorful, fancy: rendering switches merged in by trigger().
    - anything else: fault-specific context (command, input, required, ...).
    """
    __status__ = 1

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | UnsetType)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        renders = [text(self.message, styler("error-message"))]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if not (code := self.options.get("code")):
            return Group(*renders)

        header = Text.assemble(
            "[ ",
            text(program(), styler("prog-name")),
            " — ",
            text(code.normalize(), styler("code")),
            " | ",
            text(self.options.get("title", "").title(), styler("error-title")),
            " ]"
        )

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self) -> None:
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class NoCommandError(CommandException):
    __status__ = 3


class HelpShownError(CommandException):
    __status__ = 2


class UnknownCommandError(CommandException):
    @property
    def name(self):
        return self.options.get("input", "")


class UnusedArgumentsError(CommandException):
    __status__ = 4


class InsufficientArgumentsError(CommandException):
    @property
    def required(self):
        return self.options["required"]

    @property
    def provided(self):
        return self.options["provided"]


class FlagParseError(CommandException): ...
class MalformedFlagError(FlagParseError): ...
class UnknownFlagError(FlagParseError): ...
class MissingFlagValueError(FlagParseError): ...
class InvalidFlagValueError(FlagParseError): ...


class CommandFailedError(CommandException):
    """
    an exception returned (not raised) by a handler, wrapped for rendering.

    the original exception is kept under the "exception" option and as
    __cause__; the dispatcher hands the original back to its caller.
    """


class CommandPanicError(CommandException):
    """
    an unexpected exception raised by a handler, converted by recover.recovering().
    """

    @property
    def exception(self):
        return self.options.get("exception")

    @property
    def file(self):
        return self.options.get("file")

    @property
    def line(self):
        return self.options.get("line")


class ConfigurationError(TypeError):
    """
    a configuration block cannot be bound to flags (programming error).

    raised for non-instances, non-dataclasses, frozen dataclasses, and fields
    of unsupported types. the offending field (if any) is kept in .field.
    """

    def __init__(self, message, /, *, field=None):
        super().__init__(message)
        self.field = field


class SignatureError(TypeError):
    """
    a handler or hook does not match its calling contract (programming error).
    """

    def __init__(self, message, /, *, function=None, expected=None, actual=None):
        super().__init__(message)
        self.function = function
        self.expected = expected
        self.actual = actual


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into a copy of the fault via copy.replace() before
      triggering, so the caller's fault object is left untouched.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be an fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


def exitcode(fault, /):
    """
    map a dispatch result to a process exit status.

    None → 0; CommandException subclasses → their __status__; any other
    exception (e.g. one returned by a handler) → 1.
    """
    if fault is None:
        return 0
    return getattr(type(fault), "__status__", 1)


__all__ = (
    "CommandException",
    "NoCommandError",
    "HelpShownError",
    "UnknownCommandError",
    "UnusedArgumentsError",
    "InsufficientArgumentsError",
    "FlagParseError",
    "MalformedFlagError",
    "UnknownFlagError",
    "MissingFlagValueError",
    "InvalidFlagValueError",
    "CommandFailedError",
    "CommandPanicError",
    "ConfigurationError",
    "SignatureError",
    "FaultCode",
    "trigger",
    "getdoc",
    "exitcode",
)

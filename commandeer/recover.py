"""
Fault isolation around handler invocation.

recovering(command) wraps one handler call. A CommandException raised by the
handler is its way of reporting a user error and passes through untouched. Any
other Exception is unexpected: it is converted into a CommandPanicError,
printed on the diagnostic stream and raised in place of the original, so that
one broken command never takes the whole program down with a traceback.

Locating the origin
- a handler that catches an exception and raises another one produces a chain
  (__cause__ / __context__). The earliest exception of that chain is the one
  that actually went wrong, so the reported location is the innermost frame of
  that origin's traceback.

Messages
- "panic running command NAME at FILE:LINE: VALUE"
- "panic running command NAME: VALUE"   (no traceback available)

The call is never retried. KeyboardInterrupt, SystemExit and other
BaseExceptions are not intercepted.
"""
import traceback
from contextlib import contextmanager

from .faults import *


def origin(exception, /):
    """
    Return the earliest exception of exception's cause/context chain.
    """
    seen = {id(exception)}
    while True:
        nested = exception.__cause__
        if nested is None and not exception.__suppress_context__:
            nested = exception.__context__
        if nested is None or id(nested) in seen:
            return exception
        seen.add(id(nested))
        exception = nested


def locate(exception, /):
    """
    Return (file, line) where the origin of exception was raised, or None.
    """
    if (tb := origin(exception).__traceback__) is None:
        return None
    frame = traceback.extract_tb(tb)[-1]
    return frame.filename, frame.lineno


def panic(command, exception, /):
    """
    Build the CommandPanicError describing exception raised by command.
    """
    value = str(exception) or repr(exception)
    if location := locate(exception):
        file, line = location
        message = "panic running command %s at %s:%d: %s" % (command.name, file, line, value)
    else:
        file = line = None
        message = "panic running command %s: %s" % (command.name, value)
    return CommandPanicError(
        message,
        title="command panic",
        code=FaultCode.COMMAND_PANIC,
        hint="this is a bug in %s, not in the given input" % command.name,
        command=command.name,
        exception=exception,
        file=file,
        line=line,
        docs=getdoc(FaultCode.COMMAND_PANIC),
    )


@contextmanager
def recovering(command, /, **options):
    """
    Convert unexpected exceptions raised in the block into CommandPanicError.

    options are forwarded to trigger() when the panic is printed.
    """
    try:
        yield
    except CommandException:
        raise
    except Exception as exception:
        fault = panic(command, exception)
        trigger(fault, **options)
        raise fault from exception


__all__ = (
    "origin",
    "locate",
    "panic",
    "recovering",
)

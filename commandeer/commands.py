"""
Commandeer command layer: declare commands, dispatch a token stream.

What this module provides
- Command: a named, independently dispatchable operation (help, usage,
  positional contract, optional configuration instance, handler).
- command(...): build a Command from a function (name and help taken from the
  function name and docstring), directly or as a decorator.
- GlobalOptions: configuration shared by every command plus the optional
  `before` (pre-dispatch) and `after` (post-resolution) hooks.
- CommandProvider: protocol for global configuration objects that contribute
  extra commands at run time.
- run(): the dispatcher. main()/exit(): process wrappers around it.

Dispatch, step by step
1. COMMAND_DUMP_HELP set → print the JSON help document, return None.
2. hook signatures are checked (SignatureError on mismatch).
3. global flags are parsed off the front of the tokens (always before hooks).
4. `before` hook runs; CommandProvider commands are appended.
5. the command is resolved: no tokens, "help", "help <cmd>", or an unknown
   name end here with a listing/detail and the matching fault.
6. the handler shape is resolved and the configuration bound (programming
   errors raise), then the `after` hook runs.
7. command flags are parsed, positional arguments validated.
8. the handler runs inside recovering(); its error (returned exception,
   raised CommandException, or panic) is printed and returned.

Outcomes
- None on success, otherwise the fault: NoCommandError, HelpShownError,
  UnknownCommandError, FlagParseError, UnusedArgumentsError,
  InsufficientArgumentsError, CommandPanicError, or whatever the handler or a
  hook returned. exitcode() maps them to process statuses.

Quick start
    from dataclasses import dataclass
    from commandeer import Argument, Arguments, command, main, option

    @dataclass
    class GreetOptions:
        loud: bool = option(False, help="shout the greeting")

    @command(arguments=[Argument("name")], options=GreetOptions())
    def greet(arguments: Arguments, options: GreetOptions):
        \"\"\"greet someone by name\"\"\"
        message = "hello, %s" % arguments.string("name")
        print(message.upper() if options.loud else message)

    if __name__ == "__main__":
        main([greet])
"""
import difflib
import inspect
import os
import sys
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from .arguments import NO_ARGUMENTS, Argument, Arguments, check_order
from .faults import *
from .faults import console
from .flags import bind
from .help import defaults, detail, dump, listing
from .recover import recovering
from .signatures import check, outcome, resolve
from .utils import *

DUMP_HELP_VARIABLE = "COMMAND_DUMP_HELP"
"""
Environment variable that, when non-empty, makes run() print the JSON help
document to standard output instead of dispatching.
"""


class Command(metaclass=SpecType):
    """
    A declared command.

    Fields (read-only once constructed)
    - name: case-sensitive, unique within a registry; "help" is reserved.
    - help: one-line summary shown in the listing.
    - long_help: multi-line text shown by "help <name>".
    - usage: free-form text shown after the name in the usage line.
    - arguments: tuple of Argument, NO_ARGUMENTS, or None (no validation).
    - options: a dataclass instance whose fields become flags, or None.
    - handler: callable receiving (arguments?, options?) per its Shape.

    The argument sequence is checked on construction: a required argument
    after an optional one raises ValueError. The handler contract and the
    configuration are checked on the first dispatch of the command.
    """
    __introspectable__ = (
        "name",
        "help",
        "long_help",
        "usage",
        "arguments",
        "options",
        "handler",
    )

    __displayable__ = (
        "name",
        "help",
        "usage",
        "arguments",
        "options",
    )

    def __init__(self, name, handler, /, help="", long_help="", usage="", arguments=None, options=None):
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} 'name' must be a string")
        elif not name or name != name.strip() or len(name.split()) != 1:
            raise ValueError(f"{type(self).__typename__} 'name' must be a single non-empty word")
        elif name == "help":
            raise ValueError(f"{type(self).__typename__} name 'help' is reserved")

        for field, value in (("help", help), ("long_help", long_help), ("usage", usage)):
            if not isinstance(value, str):
                raise TypeError(f"{type(self).__typename__} {field!r} must be a string")

        if arguments is not None and arguments is not NO_ARGUMENTS:
            if not isinstance(arguments, Iterable):
                raise TypeError(f"{type(self).__typename__} 'arguments' must be an iterable of arguments")
            arguments = tuple(arguments)
            if not all(isinstance(argument, Argument) for argument in arguments):
                raise TypeError(f"{type(self).__typename__} 'arguments' must only contain arguments")
            check_order(arguments)

        self._name = name
        self._handler = handler
        self._help = help.strip()
        self._long_help = long_help.strip("\n")
        self._usage = usage.strip()
        self._arguments = arguments
        self._options = options
        self._shape = Unset

    @property
    def shape(self):
        """
        The handler's Shape, validated on first access (SignatureError otherwise).
        """
        if self._shape is Unset:
            self._shape = resolve(self)
        return self._shape


def command(handler=Unset, /, **metadata):
    """
    Create a Command from a function, or return a decorator doing so.

    Defaults
    - name: the function name with "_" replaced by "-".
    - help: first line of the docstring; long_help: the rest of it.

    All other keywords are forwarded to Command.
    """
    @rename("command")
    def wrapper(handler, /):
        if not callable(handler):
            raise TypeError("@command() must be applied to a callable")
        summary, _, rest = (inspect.getdoc(handler) or "").partition("\n")
        fields = {"help": summary.strip(), "long_help": rest.strip()} | metadata
        name = fields.pop("name", handler.__name__.replace("_", "-"))
        return Command(name, handler, **fields)

    return wrapper(handler) if handler is not Unset else wrapper


@runtime_checkable
class CommandProvider(Protocol):
    """
    Implemented by global configuration objects that add commands at run time.

    commands() is called after the `before` hook and its result is appended
    to the registry for that run. It must be a method: a dataclass field
    named "commands" is an ordinary flag.
    """

    def commands(self): ...


class GlobalOptions(metaclass=SpecType):
    """
    Options shared by every command of a run.

    - options: dataclass instance parsed from the flags preceding the command
      name, or None.
    - before(options?): runs before the command is resolved.
    - after(command, options?): runs once the command is known, before its
      own flags are parsed.
    Hooks take `options` only when it is not None, and return None or an
    exception; a returned exception ends the run with that result.
    """
    __introspectable__ = (
        "options",
        "before",
        "after",
    )

    def __init__(self, options=None, /, before=None, after=None):
        self._options = options
        self._before = before
        self._after = after

    def validate(self):
        """
        Validate the hook signatures (SignatureError on mismatch).
        """
        parameters = [("options", type(self.options))] if self.options is not None else []
        if self.before is not None:
            check(self.before, parameters, "before hook")
        if self.after is not None:
            check(self.after, [("command", Command)] + parameters, "after hook")


def _lookup(commands, name):
    for command in commands:
        if command.name == name:
            return command
    return None


def _report(error, what, render):
    if isinstance(error, CommandException):
        cause = error.message or type(error).__name__
    else:
        cause = str(error) or type(error).__name__
    trigger(CommandFailedError(
        "error running %s: %s" % (what, cause),
        title="command failed",
        code=FaultCode.COMMAND_FAILED,
        exception=error,
        docs=getdoc(FaultCode.COMMAND_FAILED),
    ), **render)


def _help(commands, tokens, render):
    """
    Decide and render the help outcome for tokens that do not name a command.
    """
    if not tokens:
        console.print(listing(commands, "missing command, available ones are:", **render))
        return NoCommandError(
            "no command provided",
            title="missing command",
            code=FaultCode.NO_COMMAND,
            hint="run '%s help' to see available commands" % program(),
            docs=getdoc(FaultCode.NO_COMMAND),
        )

    if tokens[0] == "help":
        if len(tokens) == 1:
            console.print(listing(commands, **render))
            return HelpShownError("help has been shown", title="help", code=FaultCode.HELP_SHOWN)
        if (command := _lookup(commands, unknown := tokens[1])) is not None:
            console.print(detail(command, **render))
            return HelpShownError("help has been shown", title="help", code=FaultCode.HELP_SHOWN, command=command.name)
    else:
        unknown = tokens[0]

    console.print(listing(commands, "unknown command %s, available ones are:" % unknown, **render))
    suggestions = difflib.get_close_matches(unknown, [command.name for command in commands], 5)
    try:
        hint = "did you mean %r?" % suggestions[0]
    except IndexError:
        hint = "run '%s help' to see available commands" % program()
    return UnknownCommandError(
        "unknown command %s" % unknown,
        title="unknown command",
        code=FaultCode.UNKNOWN_COMMAND,
        hint=hint,
        input=unknown,
        suggestions=suggestions,
        docs=getdoc(FaultCode.UNKNOWN_COMMAND),
    )


def _parse(flagset, tokens, render):
    """
    Parse flags; return (leftover tokens, None) or (None, fault).
    """
    try:
        return flagset.parse(tokens), None
    except HelpShownError as fault:
        console.print(defaults(flagset, colorful=render["colorful"]))
        return None, fault
    except FlagParseError as fault:
        trigger(fault, **render)
        console.print(defaults(flagset, colorful=render["colorful"]))
        return None, fault


def _tokens(tokens):
    if tokens is Unset:
        return sys.argv[1:]
    if isinstance(tokens, str) or not isinstance(tokens, Iterable):
        raise TypeError("run() tokens must be an iterable of strings")
    tokens = list(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("run() tokens must be an iterable of strings")
    return tokens


def run(commands, tokens=Unset, /, options=Unset, *, colorful=False, fancy=False):
    """
    Dispatch tokens to one of commands.

    Parameters
    - commands: iterable of Command (the registry for this run).
    - tokens: iterable of str; defaults to sys.argv[1:].
    - options: GlobalOptions, or Unset/None.
    - colorful, fancy: rendering switches for help and diagnostics.

    Returns
    - None on success, otherwise the fault or handler error (see module docs).
      User errors are printed on the diagnostic stream (stderr).

    Raises
    - ConfigurationError, SignatureError, ValueError, TypeError for defects in
      the command table or in the call itself.
    """
    commands = list(commands)
    if not all(isinstance(command, Command) for command in commands):
        raise TypeError("run() commands must only contain commands")
    if (options := coalesce(options)) is not None and not isinstance(options, GlobalOptions):
        raise TypeError("run() options must be global options")
    configuration = options.options if options is not None else None
    render = {"colorful": bool(colorful), "fancy": bool(fancy)}

    if os.environ.get(DUMP_HELP_VARIABLE):
        dump(commands, configuration)
        return None

    tokens = _tokens(tokens)
    if options is not None:
        options.validate()

    if configuration is not None:
        tokens, fault = _parse(bind(configuration), tokens, render)
        if fault is not None:
            return fault
    hooked = (configuration,) if configuration is not None else ()

    if options is not None and options.before is not None:
        if (error := outcome(options.before, options.before(*hooked))) is not None:
            _report(error, "before hook", render)
            return error
    # A flag field named "commands" is not a provider.
    if isinstance(configuration, CommandProvider) and callable(getattr(type(configuration), "commands", None)):
        commands.extend(configuration.commands())

    if not tokens or tokens[0] == "help":
        return _help(commands, tokens, render)
    name, tokens = tokens[0], tokens[1:]
    if (command := _lookup(commands, name)) is None:
        return _help(commands, [name], render)

    flagset = bind(command.options, command.name) if command.options is not None else None
    shape = command.shape

    if options is not None and options.after is not None:
        if (error := outcome(options.after, options.after(command, *hooked))) is not None:
            _report(error, "after hook", render)
            return error

    if flagset is not None:
        tokens, fault = _parse(flagset, tokens, render)
        if fault is not None:
            return fault

    arguments = Arguments(tokens, command)
    try:
        arguments.validate()
    except (UnusedArgumentsError, InsufficientArgumentsError) as fault:
        trigger(fault, **render)
        return fault

    try:
        with recovering(command, **render):
            value = shape.invoke(command.handler, arguments, command.options)
    except CommandPanicError as fault:
        return fault
    except CommandException as fault:
        error = fault
    else:
        error = outcome(command.handler, value)

    if error is not None:
        _report(error, "command %s" % name, render)
    return error


def exit(fault, /):
    """
    Exit the process with the status matching a run() result.

    0 on success, 2 help shown, 3 no command, 4 unused arguments, 1 otherwise.
    """
    sys.exit(exitcode(fault))


def main(commands, tokens=Unset, /, options=Unset, **render):
    """
    Run commands and exit with the matching status.
    """
    exit(run(commands, tokens, options, **render))


__all__ = (
    "Command",
    "command",
    "CommandProvider",
    "GlobalOptions",
    "DUMP_HELP_VARIABLE",
    "run",
    "main",
    "exit",
)

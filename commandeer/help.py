"""
Help rendering (rich) and the machine-readable help document.

Renderables
- listing(commands, notice)   two-column name/help table of every command, plus
                              the built-in "help" entry, preceded by a notice
                              ("missing command, ..." / "unknown command X, ...")
- detail(command)             "name: help", usage line, long help, flags and
                              arguments of one command
- defaults(flagset)           one entry per flag: "-name type" then its help
                              and non-zero default

Document
- document(commands, options) the dictionary dumped as JSON when
  COMMAND_DUMP_HELP is set: {"name", "flags", "commands": [{"name", "help",
  "long_help", "usage", "flags"}]} where each flag is {"name", "help",
  "type", "default"}. Missing flag lists are null.

Palette keys (overridable through __styles__ in __main__)
- command-name, section, flag-name, flag-type, default, notice
"""
import json
import sys
from collections import defaultdict

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .arguments import NO_ARGUMENTS
from .flags import bind
from .utils import program

_ZEROS = {"", "0", "0.0", "false"}


def _styler(colorful):
    styles = defaultdict(str, {
        "command-name": "bold #00E5FF",
        "section": "bold #E6E6F0",
        "flag-name": "bold #9CE19C",
        "flag-type": "italic #C8C8D0",
        "default": "dim",
        "notice": "bold #FF4DA6",
    } | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""
    return styler


def _frame(renderable, fancy, title=None):
    if fancy:
        return Panel(renderable, title=title or program(), title_align="left")
    return renderable


def listing(commands, notice="", /, *, colorful=False, fancy=False):
    """
    Render the brief listing of all commands.
    """
    styler = _styler(colorful)
    table = Table.grid(padding=(0, 2))
    table.add_column(no_wrap=True)
    table.add_column()
    for command in commands:
        table.add_row(Text(command.name, styler("command-name")), Text(command.help))
    table.add_row(Text("help", styler("command-name")), Text("Print this help"))

    renders = []
    if notice:
        renders.extend((Text(notice, styler("notice")), Text("")))
    renders.extend((table, Text(""), Text("To view additional help for each command use help <command_name>")))
    return _frame(Group(*renders), fancy)


def defaults(flagset, /, *, colorful=False):
    """
    Render the flags of a FlagSet with their help and defaults.
    """
    styler = _styler(colorful)
    lines = []
    for flag in flagset:
        head = Text.assemble("  ", ("-" + flag.name, styler("flag-name")))
        if not flag.boolean:
            head.append(" " + flag.type, styler("flag-type"))
        lines.append(head)
        body = Text("      ")
        body.append(flag.help)
        if flag.default not in _ZEROS:
            default = repr(flag.default) if flag.type == "string" else flag.default
            body.append("%s(default %s)" % (" " if flag.help else "", default), styler("default"))
        if body.plain.strip():
            lines.append(body)
    return Group(*lines)


def synopsis(command, /):
    """
    Return the usage line of a command ("prog name usage args..."), or "".
    """
    arguments = [] if command.arguments is NO_ARGUMENTS else list(command.arguments or ())
    if not command.usage and not arguments:
        return ""
    parts = [program(), command.name]
    if command.usage:
        parts.append(command.usage)
    for argument in arguments:
        parts.append("[%s]" % argument.name if argument.optional else argument.name)
    return " ".join(parts)


def detail(command, /, *, colorful=False, fancy=False):
    """
    Render the detailed help of one command.
    """
    styler = _styler(colorful)
    renders = [Text.assemble((command.name, styler("command-name")), ": ", command.help)]
    if usage := synopsis(command):
        renders.append(Text("usage: " + usage))
    if command.long_help:
        renders.extend((Text(""), Text(command.long_help)))
    if command.options is not None:
        renders.extend((Text(""), Text("Flags:", styler("section")), defaults(bind(command.options, command.name), colorful=colorful)))
    arguments = [] if command.arguments is NO_ARGUMENTS else list(command.arguments or ())
    if arguments:
        renders.extend((Text(""), Text("Arguments:", styler("section"))))
        for argument in arguments:
            renders.append(Text.assemble("  ", (argument.name, styler("flag-name")), ": ", argument.help))
    return _frame(Group(*renders), fancy, title=command.name)


def _flags(options, name=""):
    if options is None:
        return None
    return [
        {"name": flag.name, "help": flag.help, "type": flag.type, "default": flag.default}
        for flag in bind(options, name)
    ] or None


def document(commands, options=None, /):
    """
    Build the help document for commands and the global options instance.
    """
    return {
        "name": program(),
        "flags": _flags(options),
        "commands": [
            {
                "name": command.name,
                "help": command.help,
                "long_help": command.long_help,
                "usage": command.usage,
                "flags": _flags(command.options, command.name),
            }
            for command in commands
        ] or None,
    }


def dump(commands, options=None, /, file=None):
    """
    Write the help document as JSON (one line, newline-terminated).
    """
    file = file or sys.stdout
    file.write(json.dumps(document(commands, options)) + "\n")
    file.flush()


__all__ = (
    "listing",
    "defaults",
    "synopsis",
    "detail",
    "document",
    "dump",
)

"""
commandeer-tool: documentation generator for programs built on commandeer.

    commandeer-tool help-md [-header FILE] [-footer FILE] [-o OUT] <cmd>

help-md runs <cmd> with COMMAND_DUMP_HELP=1, reads the JSON help document it
prints and renders it as Markdown: a title (or the -header file), the global
flags, then one section per command with its help, usage, long help and
flags, followed by the -footer file. The result goes to -o or to stdout.

Markdown metacharacters are escaped, except on lines indented by four or more
spaces (code blocks), where escapes would show up literally.
"""
import json
import os
import subprocess
from dataclasses import dataclass

from .arguments import Argument
from .commands import DUMP_HELP_VARIABLE, command, main as _main
from .faults import CommandException
from .flags import option

_SPECIALS = frozenset("\\`*_{}[]()#+-.!<>")


def escape(text, /):
    """
    Escape Markdown metacharacters outside of indented code lines.
    """
    whitespace = 0
    content = False
    parts = []
    for char in text:
        if char == " " and not content:
            whitespace += 1
        else:
            content = True
            if char == "\n":
                whitespace = 0
                content = False
        if whitespace < 4 and char in _SPECIALS:
            parts.append("\\")
        parts.append(char)
    return "".join(parts)


def escape_multiline(text, spaces, /):
    """
    Escape text and indent every line by spaces.
    """
    escaped = escape(text)
    if spaces > 0:
        pad = " " * spaces
        escaped = pad + escaped.replace("\n", "\n" + pad)
    return escaped


def _flag(flag):
    line = " - **%s**" % escape(flag["name"])
    if flag.get("type"):
        line += r" *\(%s\)*" % escape(flag["type"])
    if flag.get("help") or flag.get("default"):
        line += ":"
        if flag.get("help"):
            line += " " + escape(flag["help"])
        if flag.get("default"):
            line += " *default: %s*" % escape(flag["default"])
    return line


def render(document, /):
    """
    Render a help document (as produced by COMMAND_DUMP_HELP) to Markdown.

    The title is not included; see help_md().
    """
    lines = []
    if flags := document.get("flags"):
        lines.extend(("## Global flags", ""))
        lines.extend(map(_flag, flags))
        lines.append("")
    if commands := document.get("commands"):
        lines.extend(("## Commands", ""))
        for entry in commands:
            lines.append("- ## %s" % escape(entry["name"]))
            if entry.get("help"):
                lines.extend(("", "    " + escape(entry["help"])))
            if entry.get("usage"):
                lines.extend(("", "    Usage: ```%s %s %s```" % (document["name"], entry["name"], entry["usage"])))
            if entry.get("long_help"):
                lines.extend(("", escape_multiline(entry["long_help"], 4)))
            if entry.get("flags"):
                lines.extend(("", "    Flags:", ""))
                lines.extend("    " + _flag(flag) for flag in entry["flags"])
            lines.append("")
    return "\n".join(lines) + "\n" if lines else ""


def _read(path, what):
    try:
        with open(path, encoding="utf-8") as file:
            return file.read()
    except OSError as exception:
        raise CommandException("error reading %s file %s: %s" % (what, path, exception)) from exception


@dataclass
class MarkdownOptions:
    header: str = option("", help="Header to prepend to the document")
    footer: str = option("", help="Footer to append to the document")
    output: str = option("", name="o", help="Output file. If empty, output is printed to stdout")


@command(
    name="help-md",
    arguments=[Argument("cmd", help="program to document (must be built on commandeer)")],
    options=MarkdownOptions(),
)
def help_md(arguments, options):
    """
    Generates a markdown document with the help for the given command
    """
    try:
        process = subprocess.run(
            [arguments.string("cmd")],
            env=os.environ | {DUMP_HELP_VARIABLE: "1"},
            stdout=subprocess.PIPE,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exception:
        return CommandException("error running %s: %s" % (arguments.string("cmd"), exception))
    try:
        document = json.loads(process.stdout)
    except ValueError as exception:
        return CommandException("error decoding help of %s: %s" % (arguments.string("cmd"), exception))

    if options.header:
        out = _read(options.header, "header")
    else:
        title = escape(document["name"])
        out = "%s\n%s\n\n" % (title, "=" * len(title))
    out += render(document)
    if options.footer:
        out += _read(options.footer, "footer")

    if not options.output:
        print(out, end="")
        return None
    try:
        with open(options.output, "w", encoding="utf-8") as file:
            file.write(out)
    except OSError as exception:
        return CommandException("error writing output file %s: %s" % (options.output, exception))
    return None


COMMANDS = (help_md,)


def main():
    _main(COMMANDS)


if __name__ == "__main__":
    main()

r"""
Commandeer configuration binder: dataclass fields as command-line flags.

Overview
- A command's configuration block is a dataclass *instance*. bind() walks its
  fields in declaration order and produces one Flag per exposed field, then
  returns a FlagSet able to parse a token list straight into that instance.
- Parsing mutates the instance in place; nothing is copied. The values a
  field holds when bind() runs become the flags' reported defaults.

Declaring fields
    >>> from dataclasses import dataclass
    >>> from commandeer import option, uint
    >>> @dataclass
    ... class ServeOptions:
    ...     port: uint = option(8080, name="p", help="port to listen on")
    ...     dry_run: bool = False          # exposed as -dry-run
    ...     _cache: dict = None            # private: not exposed

Naming
- The flag name defaults to the field name lower-cased with "_" turned into
  "-" (dry_run → dry-run). option(name=...) or field metadata {"name": ...}
  overrides it; metadata {"help": ...} provides the help text.

Supported kinds
- bool, int, uint (non-negative int), float, str; reported as the flag types
  "bool", "int", "uint", "float64" and "string".
- int and uint values accept the 0x, 0o, 0b and leading-zero octal prefixes
  and "_" digit separators.
- Any value implementing the Value protocol (set(text) + __str__), where set
  takes exactly one argument. Those fields are bound through the object they
  hold: parsing calls its set().

Token grammar (compatible with Go's flag package)
- -name, --name               boolean flags are set to true
- -name=value, --name=value   any kind (booleans accept 1/t/true/0/f/false...)
- -name value                 non-boolean kinds only
- parsing stops at the first non-flag token or at a lone "-"; "--" is
  consumed and stops parsing.
- -h / -help / --help, when not defined by the block, stop with HelpShownError.

Errors
- Programming errors (ConfigurationError) are raised by bind(): class objects
  or frozen dataclasses ("must be an instance"), non-dataclasses ("not a
  dataclass"), unsupported field types ("invalid option type ... for field X"),
  empty or duplicated flag names.
- User errors (FlagParseError subclasses) are raised by FlagSet.parse().
"""
import dataclasses
import difflib
import inspect
import typing
from collections import deque
from typing import Protocol, runtime_checkable

from .faults import *
from .utils import *


@runtime_checkable
class Value(Protocol):
    """
    Custom flag value capability.

    set(text) parses and stores the textual value (raising ValueError on bad
    input); str(value) renders the current value (used as the flag default).
    """

    def set(self, text): ...

    def __str__(self): ...


class uint(int):
    """
    Non-negative integer, bound as a "uint" flag.
    """

    def __new__(cls, value=0, /):
        self = super().__new__(cls, value)
        if self < 0:
            raise ValueError("uint() value must be non-negative, not %d" % self)
        return self


_TRUTHS = {"1": True, "t": True, "T": True, "TRUE": True, "true": True, "True": True,
           "0": False, "f": False, "F": False, "FALSE": False, "false": False, "False": False}


def _boolean(text):
    try:
        return _TRUTHS[text]
    except KeyError:
        raise ValueError("invalid syntax") from None


def _integer(text):
    try:
        return int(text, 0)
    except ValueError:
        # A bare leading zero is an octal prefix ("0755").
        if text.lstrip("+-").startswith("0"):
            return int(text, 8)
        raise


def _unsigned(text):
    return uint(_integer(text))


# Checked in order: bool before int since bool subclasses int, uint before int.
_KINDS = {
    bool: ("bool", _boolean),
    uint: ("uint", _unsigned),
    int: ("int", _integer),
    float: ("float64", float),
    str: ("string", str),
}


def _stringify(value):
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def option(default=dataclasses.MISSING, /, *, name=Unset, help=Unset, factory=dataclasses.MISSING):
    """
    Declare a dataclass field with flag metadata.

    Parameters
    - default: the field default (also the flag default).
    - name: flag name overriding the derived one.
    - help: one-line flag help.
    - factory: default factory, e.g. for custom Value objects.

    Returns
    - dataclasses.Field carrying {"name": ..., "help": ...} metadata.
    """
    metadata = {}
    if name is not Unset:
        if not isinstance(name, str):
            raise TypeError("option 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError("option 'name' cannot be empty")
        metadata["name"] = name
    if help is not Unset:
        if not isinstance(help, str):
            raise TypeError("option 'help' must be a string")
        metadata["help"] = help.strip()
    return dataclasses.field(default=default, default_factory=factory, metadata=metadata)


class Flag(metaclass=SpecType):
    """
    A named, typed, settable view over one field of a bound configuration.

    name/help/type/default are the public record (type is one of "bool",
    "int", "uint", "float64", "string"; custom values report "string").
    default is the stringified value of the field at bind time.
    """
    __introspectable__ = (
        "name",
        "help",
        "type",
        "default",
    )

    def __init__(self, instance, field, name, help, type, parser):
        self._instance = instance
        self._field = field
        self._name = name
        self._help = help
        self._type = type
        self._parser = parser
        self._default = _stringify(getattr(instance, field))

    @property
    def boolean(self):
        return self._type == "bool"

    @property
    def value(self):
        """
        Stringified current value of the bound field.
        """
        return _stringify(getattr(self._instance, self._field))

    def set(self, text):
        """
        Parse text and store it into the bound field (ValueError on bad input).
        """
        if self._parser is Unset:
            getattr(self._instance, self._field).set(text)
        else:
            setattr(self._instance, self._field, self._parser(text))


class FlagSet:
    """
    Ordered collection of Flags bound to one configuration instance.

    name identifies the owner in messages: "" for global options, the command
    name otherwise.
    """

    def __init__(self, name, flags):
        self.name = name
        self._flags = {}
        for flag in flags:
            if flag.name in self._flags:
                raise ConfigurationError(
                    "flag name %r is used by more than one field" % flag.name, field=flag._field
                )
            self._flags[flag.name] = flag

    @property
    def flags(self):
        return tuple(self._flags.values())

    def __contains__(self, name):
        return name in self._flags

    def __getitem__(self, name):
        return self._flags[name]

    def __iter__(self):
        return iter(self._flags.values())

    def __len__(self):
        return len(self._flags)

    def _context(self):
        return "command %s" % self.name if self.name else "global options"

    def parse(self, tokens):
        """
        Parse leading flags from tokens into the bound instance.

        Returns
        - list[str]: the tokens left after the last consumed flag.

        Raises
        - HelpShownError: -h/-help/--help was given and is not a declared flag.
        - MalformedFlagError, UnknownFlagError, MissingFlagValueError,
          InvalidFlagValueError.
        """
        tokens = deque(tokens)
        while tokens:
            token = tokens[0]
            if len(token) < 2 or token[0] != "-":
                break
            dashes = 1
            if token[1] == "-":
                dashes = 2
                if len(token) == 2:
                    tokens.popleft()
                    break
            input = token[dashes:]
            if not input or input[0] in "-=":
                raise MalformedFlagError(
                    "bad flag syntax: %s" % token,
                    title="malformed flag",
                    code=FaultCode.MALFORMED_FLAG,
                    hint="flags are written as -name, -name=value or -name value",
                    input=token,
                    docs=getdoc(FaultCode.MALFORMED_FLAG),
                )
            tokens.popleft()
            input, separator, value = input.partition("=")

            try:
                flag = self._flags[input]
            except KeyError:
                if input in ("h", "help"):
                    raise HelpShownError(
                        "help has been shown",
                        title="help",
                        code=FaultCode.HELP_SHOWN,
                        command=self.name,
                    ) from None
                suggestions = difflib.get_close_matches(input, self._flags.keys(), 5)
                try:
                    hint = "did you mean -%s?" % suggestions[0]
                except IndexError:
                    hint = "see the flags accepted by %s" % self._context()
                raise UnknownFlagError(
                    "flag provided but not defined: -%s" % input,
                    title="unknown flag",
                    code=FaultCode.UNKNOWN_FLAG,
                    hint=hint,
                    input=input,
                    suggestions=suggestions,
                    docs=getdoc(FaultCode.UNKNOWN_FLAG),
                ) from None

            if flag.boolean and not separator:
                value = "true"
            elif not separator:
                if not tokens:
                    raise MissingFlagValueError(
                        "flag needs an argument: -%s" % input,
                        title="missing flag value",
                        code=FaultCode.MISSING_FLAG_VALUE,
                        hint="pass a value as -%s=<value> or -%s <value>" % (input, input),
                        input=input,
                        docs=getdoc(FaultCode.MISSING_FLAG_VALUE),
                    )
                value = tokens.popleft()

            try:
                flag.set(value)
            except ValueError as exception:
                raise InvalidFlagValueError(
                    "invalid value %r for flag -%s: %s" % (value, input, exception),
                    title="invalid flag value",
                    code=FaultCode.INVALID_FLAG_VALUE,
                    hint="-%s expects a value of type %s" % (input, flag.type),
                    input=input,
                    value=value,
                    docs=getdoc(FaultCode.INVALID_FLAG_VALUE),
                ) from exception
        return list(tokens)


def _settable(value):
    """
    Tell whether value implements Value with a set() taking one text argument.
    """
    if not isinstance(value, Value) or not callable(setter := getattr(value, "set", None)):
        return False
    try:
        inspect.signature(setter).bind("")
    except TypeError:
        return False
    except ValueError:
        # No signature metadata (some builtins): trust the protocol.
        return True
    return True


def _annotations(cls):
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        # Unresolvable forward references: fall back to the raw field types.
        return {}


def bind(instance, name="", /):
    """
    Bind a configuration instance and return its FlagSet.

    Parameters
    - instance: a (non-frozen) dataclass instance.
    - name: owning command name ("" for global options), used in messages.

    Raises
    - ConfigurationError: see the module documentation.
    """
    owner = "command %s options" % name if name else "options"

    if isinstance(instance, type):
        raise ConfigurationError("invalid %s %s, must be an instance, not a type" % (owner, instance.__qualname__))
    if not dataclasses.is_dataclass(instance):
        raise ConfigurationError("%s field is not a dataclass, it's %s" % (owner, type(instance).__qualname__))
    if type(instance).__dataclass_params__.frozen:
        raise ConfigurationError("invalid %s %s, must be mutable (frozen dataclass)" % (owner, type(instance).__qualname__))

    annotations = _annotations(type(instance))
    names = {kind.__name__: kind for kind in _KINDS}

    flags = []
    for field in dataclasses.fields(instance):
        if field.name.startswith("_"):
            continue
        flag = field.metadata.get("name", field.name.lower().replace("_", "-"))
        if not isinstance(flag, str) or not flag:
            raise ConfigurationError(
                "no name provided for field %s in type %s" % (field.name, type(instance).__qualname__),
                field=field.name
            )
        help = field.metadata.get("help", "")

        annotation = annotations.get(field.name, field.type)
        if isinstance(annotation, str):
            annotation = names.get(annotation, annotation)

        try:
            kind, parser = _KINDS[annotation]
        except (KeyError, TypeError):
            if not _settable(getattr(instance, field.name)):
                raise ConfigurationError(
                    "field %s has invalid option type %s" % (field.name, getattr(annotation, "__name__", annotation)),
                    field=field.name
                ) from None
            kind, parser = "string", Unset
        flags.append(Flag(instance, field.name, flag, help, kind, parser))

    return FlagSet(name, flags)


__all__ = (
    "Value",
    "uint",
    "option",
    "Flag",
    "FlagSet",
    "bind",
)

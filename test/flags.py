"""
Flags module behavioral tests (binding, naming, token grammar, faults).

Scope
- Validate bind(): derived names, kinds and stringified defaults.
- Validate FlagSet.parse(): Go-compatible grammar, leftovers, idempotence.
- Validate user faults (unknown/malformed/missing/invalid, help) and
  programming errors (ConfigurationError).

Conventions
- Test method names follow CamelCase per project convention.
- Configuration dataclasses are declared at module level so their type
  hints resolve.
"""

import threading
import unittest
from dataclasses import dataclass
from unittest import TestCase

from commandeer import Value, bind, option, uint
from commandeer.faults import (
    ConfigurationError,
    HelpShownError,
    InvalidFlagValueError,
    MalformedFlagError,
    MissingFlagValueError,
    UnknownFlagError,
)


@dataclass
class ServeOptions:
    port: uint = option(uint(8080), name="p", help="port to listen on")
    dry_run: bool = False
    ratio: float = 0.5
    host: str = option("localhost", help="address to bind")
    retries: int = 3
    _cache: dict = None


class Level:
    def __init__(self, level="info"):
        self.level = level

    def set(self, text):
        if text not in ("debug", "info", "warning"):
            raise ValueError("unknown level %r" % text)
        self.level = text

    def __str__(self):
        return self.level


@dataclass
class LogOptions:
    level: Level = option(name="log-level", help="minimum level", factory=Level)


@dataclass(frozen=True)
class FrozenOptions:
    verbose: bool = False


@dataclass
class ListOptions:
    names: list = None


@dataclass
class EventOptions:
    ready: threading.Event = option(factory=threading.Event)


@dataclass
class ClashingOptions:
    first: str = option("", name="x")
    second: str = option("", name="x")


class TestBinding(TestCase):
    """Behavioral tests for bind() and the Flag records it produces."""

    def testNamesFollowFieldsAndOverrides(self):
        flags = bind(ServeOptions())
        self.assertEqual([flag.name for flag in flags], ["p", "dry-run", "ratio", "host", "retries"])

    def testPrivateFieldsAreNotExposed(self):
        flags = bind(ServeOptions())
        self.assertNotIn("_cache", flags)
        self.assertNotIn("-cache", flags)
        self.assertEqual(len(flags), 5)

    def testKindsAndDefaults(self):
        flags = bind(ServeOptions())
        self.assertEqual(
            [(flag.type, flag.default) for flag in flags],
            [("uint", "8080"), ("bool", "false"), ("float64", "0.5"), ("string", "localhost"), ("int", "3")],
        )

    def testBooleanDefaultRendersTrue(self):
        flags = bind(ServeOptions(dry_run=True))
        self.assertEqual(flags["dry-run"].default, "true")

    def testHelpFromMetadata(self):
        flags = bind(ServeOptions())
        self.assertEqual(flags["p"].help, "port to listen on")
        self.assertEqual(flags["dry-run"].help, "")

    def testCustomValueIsBoundAsString(self):
        flags = bind(LogOptions())
        self.assertEqual(flags["log-level"].type, "string")
        self.assertEqual(flags["log-level"].default, "info")
        self.assertIsInstance(LogOptions().level, Value)

    def testTypeIsRejected(self):
        with self.assertRaises(ConfigurationError) as context:
            bind(ServeOptions)
        self.assertIn("must be an instance", str(context.exception))

    def testFrozenDataclassIsRejected(self):
        with self.assertRaises(ConfigurationError) as context:
            bind(FrozenOptions())
        self.assertIn("must be mutable", str(context.exception))

    def testNonDataclassIsRejected(self):
        with self.assertRaises(ConfigurationError) as context:
            bind(object(), "greet")
        self.assertIn("not a dataclass", str(context.exception))
        self.assertIn("command greet", str(context.exception))

    def testUnsupportedFieldTypeIsRejected(self):
        with self.assertRaises(ConfigurationError) as context:
            bind(ListOptions())
        self.assertEqual(context.exception.field, "names")
        self.assertIn("invalid option type", str(context.exception))

    def testSetWithoutTextArgumentIsRejected(self):
        with self.assertRaises(ConfigurationError) as context:
            bind(EventOptions())
        self.assertEqual(context.exception.field, "ready")

    def testDuplicateFlagNamesAreRejected(self):
        with self.assertRaises(ConfigurationError):
            bind(ClashingOptions())

    def testConfigurationErrorIsTypeError(self):
        self.assertTrue(issubclass(ConfigurationError, TypeError))

    def testUintRejectsNegatives(self):
        with self.assertRaises(ValueError):
            uint(-1)
        self.assertEqual(uint("42"), 42)


class TestParsing(TestCase):
    """Behavioral tests for FlagSet.parse() on a bound instance."""

    def testParseMutatesInstanceAndReturnsLeftovers(self):
        options = ServeOptions()
        leftovers = bind(options).parse(
            ["-p", "9000", "--dry-run", "-ratio=0.25", "--host=example.org", "rest", "-retries=9"]
        )
        self.assertEqual(leftovers, ["rest", "-retries=9"])
        self.assertEqual(options.port, 9000)
        self.assertIsInstance(options.port, uint)
        self.assertIs(options.dry_run, True)
        self.assertEqual(options.ratio, 0.25)
        self.assertEqual(options.host, "example.org")
        self.assertEqual(options.retries, 3)

    def testDoubleDashIsConsumedAndStops(self):
        options = ServeOptions()
        self.assertEqual(bind(options).parse(["-dry-run", "--", "-p", "1"]), ["-p", "1"])
        self.assertEqual(options.port, 8080)

    def testLoneDashStops(self):
        self.assertEqual(bind(ServeOptions()).parse(["-", "x"]), ["-", "x"])

    def testEmptyTokens(self):
        self.assertEqual(bind(ServeOptions()).parse([]), [])

    def testBooleanAcceptsExplicitValue(self):
        options = ServeOptions(dry_run=True)
        bind(options).parse(["-dry-run=false"])
        self.assertIs(options.dry_run, False)
        bind(options).parse(["-dry-run=T"])
        self.assertIs(options.dry_run, True)

    def testBooleanDoesNotConsumeNextToken(self):
        options = ServeOptions()
        self.assertEqual(bind(options).parse(["-dry-run", "false"]), ["false"])
        self.assertIs(options.dry_run, True)

    def testInvalidBooleanValue(self):
        with self.assertRaises(InvalidFlagValueError):
            bind(ServeOptions()).parse(["-dry-run=maybe"])

    def testInvalidIntegerValue(self):
        with self.assertRaises(InvalidFlagValueError) as context:
            bind(ServeOptions()).parse(["-retries=abc"])
        self.assertEqual(context.exception.options["input"], "retries")
        self.assertEqual(context.exception.options["value"], "abc")

    def testIntegerPrefixes(self):
        options = ServeOptions()
        flags = bind(options)
        for text, expected in (("0x1f", 31), ("0o17", 15), ("0b101", 5), ("0755", 493), ("-0755", -493), ("1_000", 1000), ("0", 0)):
            with self.subTest(text=text):
                flags.parse(["-retries", text])
                self.assertEqual(options.retries, expected)
        flags.parse(["-p=0x10"])
        self.assertEqual(options.port, 16)
        self.assertIsInstance(options.port, uint)

    def testInvalidOctalValue(self):
        with self.assertRaises(InvalidFlagValueError):
            bind(ServeOptions()).parse(["-retries=09"])

    def testNegativeUintValue(self):
        with self.assertRaises(InvalidFlagValueError):
            bind(ServeOptions()).parse(["-p", "-1"])

    def testUnknownFlagSuggestsCloseMatch(self):
        with self.assertRaises(UnknownFlagError) as context:
            bind(ServeOptions()).parse(["-hots=x"])
        self.assertEqual(context.exception.options["input"], "hots")
        self.assertIn("host", context.exception.options["suggestions"])
        self.assertIn("flag provided but not defined: -hots", str(context.exception))

    def testMissingValue(self):
        with self.assertRaises(MissingFlagValueError):
            bind(ServeOptions()).parse(["-host"])

    def testMalformedFlags(self):
        for token in ("---x", "-=x", "--=x"):
            with self.subTest(token=token), self.assertRaises(MalformedFlagError):
                bind(ServeOptions()).parse([token])

    def testHelpFlags(self):
        for token in ("-h", "-help", "--help", "--h"):
            with self.subTest(token=token), self.assertRaises(HelpShownError):
                bind(ServeOptions()).parse([token])

    def testParsingIsIdempotent(self):
        tokens = ["-p", "7000", "-host", "a.example", "-ratio", "2"]
        first, second = ServeOptions(), ServeOptions()
        bind(first).parse(tokens)
        bind(second).parse(tokens)
        bind(second).parse(tokens)
        self.assertEqual(first, second)

    def testCustomValueIsSetThroughCapability(self):
        options = LogOptions()
        flags = bind(options)
        flags.parse(["-log-level", "debug"])
        self.assertEqual(options.level.level, "debug")
        self.assertEqual(flags["log-level"].value, "debug")
        self.assertEqual(flags["log-level"].default, "info")

    def testCustomValueRejection(self):
        with self.assertRaises(InvalidFlagValueError):
            bind(LogOptions()).parse(["-log-level=loud"])


if __name__ == "__main__":
    unittest.main()

"""
Recover module behavioral tests (panic conversion, location, pass-through).

Conventions
- Test method names follow CamelCase per project convention.
- Output printed on the diagnostic console is captured, never shown.
"""

import unittest
from unittest import TestCase

from commandeer import Command, CommandException, CommandPanicError
from commandeer.faults import FaultCode, console
from commandeer.recover import locate, origin, panic, recovering


def failing():
    raise ZeroDivisionError("division by zero")


def rethrowing():
    try:
        failing()
    except ZeroDivisionError as exception:
        raise RuntimeError("wrapped") from exception


def hiding():
    try:
        failing()
    except ZeroDivisionError:
        raise RuntimeError("hidden") from None


CRASH = Command("crash", failing)
FAILING_LINE = failing.__code__.co_firstlineno + 1
FAILING_FILE = failing.__code__.co_filename


class TestRecovering(TestCase):
    """Behavioral tests for the recovering() context manager."""

    def testPanicIsConvertedAndLocated(self):
        with console.capture() as capture, self.assertRaises(CommandPanicError) as context:
            with recovering(CRASH):
                failing()
        fault = context.exception
        self.assertEqual(fault.file, FAILING_FILE)
        self.assertEqual(fault.line, FAILING_LINE)
        self.assertIsInstance(fault.exception, ZeroDivisionError)
        self.assertIs(fault.__cause__, fault.exception)
        self.assertEqual(
            str(fault),
            "panic running command crash at %s:%d: division by zero" % (FAILING_FILE, FAILING_LINE),
        )
        self.assertEqual(fault.options["code"], FaultCode.COMMAND_PANIC)
        self.assertIn("panic running command crash", capture.get())

    def testChainedPanicReportsOrigin(self):
        with console.capture(), self.assertRaises(CommandPanicError) as context:
            with recovering(CRASH):
                rethrowing()
        self.assertEqual(context.exception.line, FAILING_LINE)
        self.assertTrue(str(context.exception).endswith(": wrapped"))

    def testCommandExceptionPassesThrough(self):
        with console.capture() as capture, self.assertRaises(CommandException) as context:
            with recovering(CRASH):
                raise CommandException("nope")
        self.assertIs(type(context.exception), CommandException)
        self.assertEqual(capture.get(), "")

    def testBaseExceptionsPropagate(self):
        with self.assertRaises(KeyboardInterrupt):
            with recovering(CRASH):
                raise KeyboardInterrupt

    def testNoExceptionIsTransparent(self):
        with recovering(CRASH):
            value = 42
        self.assertEqual(value, 42)


class TestLocation(TestCase):
    """Behavioral tests for origin()/locate()/panic()."""

    def testOriginFollowsCause(self):
        try:
            rethrowing()
        except RuntimeError as exception:
            self.assertIsInstance(origin(exception), ZeroDivisionError)

    def testOriginStopsAtSuppressedContext(self):
        try:
            hiding()
        except RuntimeError as exception:
            self.assertIs(origin(exception), exception)
            self.assertEqual(locate(exception)[0], FAILING_FILE)

    def testPanicWithoutTraceback(self):
        fault = panic(CRASH, ValueError("bad value"))
        self.assertIsNone(fault.file)
        self.assertIsNone(fault.line)
        self.assertEqual(str(fault), "panic running command crash: bad value")

    def testPanicWithEmptyMessageUsesRepr(self):
        self.assertEqual(str(panic(CRASH, ValueError())), "panic running command crash: ValueError()")


if __name__ == "__main__":
    unittest.main()

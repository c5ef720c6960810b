"""
Tests for the utilities shared by the package.

This module verifies:
- Unset: singleton identity, falsy semantics, representation, copy/pickle
  identity and finality.
- coalesce(), rename() and mirror() behavior.
- SpecType: derived __typename__, read-only mirrored fields and repr.
- program(): name resolution from __main__.__prog__ or sys.argv[0].
"""
import copy
import pickle
import sys
import unittest
from unittest import TestCase, mock

from commandeer.utils import *


class Sample(metaclass=SpecType):
    __introspectable__ = (
        "name",
        "values",
    )

    __displayable__ = (
        "name",
    )

    def __init__(self, name, values):
        self._name = name
        self._values = values


class UnsetTest(TestCase):
    """
    Test suite for the `Unset` sentinel.
    """

    def testSingleton(self) -> None:
        """
        The constructor returns the exported instance on every call.
        """
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testFalsely(self) -> None:
        self.assertFalse(bool(Unset))
        self.assertNotEqual(Unset, None)
        self.assertNotEqual(Unset, False)  # noqa: E712

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testCopyAndPicklePreserveSingleton(self) -> None:
        """
        copy(), deepcopy() and pickle round-trips preserve identity.
        """
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testUnionSupport(self) -> None:
        self.assertIsInstance("text", str | UnsetType)
        self.assertIsInstance(Unset, str | UnsetType)

    def testFinalClass(self) -> None:
        """
        The class is final: attempts to subclass must fail with TypeError.
        """
        with self.assertRaises(TypeError):
            type("UnsetType", (UnsetType,), {})


class HelpersTest(TestCase):
    """
    Test suite for coalesce(), rename() and mirror().
    """

    def testCoalesce(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)

    def testRenameDirect(self) -> None:
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testRenameDecorator(self) -> None:
        @rename("decorated")
        def function():
            pass

        self.assertEqual(function.__name__, "decorated")

    def testRenameRejectsBadInput(self) -> None:
        with self.assertRaises(TypeError):
            rename(42, "name")
        with self.assertRaises(TypeError):
            rename(print, 42)
        with self.assertRaises(TypeError):
            rename()


class SpecTypeTest(TestCase):
    """
    Test suite for records built on SpecType.
    """

    def testTypename(self) -> None:
        self.assertEqual(Sample.__typename__, "sample")
        self.assertEqual(SpecType("GlobalOptions", (), {}).__typename__, "global-options")

    def testMirroredFieldsAreReadOnly(self) -> None:
        sample = Sample("x", [1, 2])
        self.assertEqual(sample.name, "x")
        with self.assertRaises(AttributeError):
            sample.name = "y"

    def testMirroredContainersAreCopied(self) -> None:
        values = [1, 2]
        sample = Sample("x", values)
        self.assertEqual(sample.values, (1, 2))
        values.append(3)
        self.assertEqual(sample._values, [1, 2, 3])
        self.assertIsInstance(sample.values, tuple)

    def testReprUsesDisplayableFields(self) -> None:
        self.assertEqual(repr(Sample("x", [])), "sample(name='x')")
        self.assertEqual(list(Sample("x", []).__rich_repr__()), [("name", "x")])


class ProgramTest(TestCase):
    """
    Test suite for program().
    """

    def testArgv(self) -> None:
        with mock.patch.object(sys, "argv", ["/usr/local/bin/greeter", "greet"]):
            self.assertEqual(program(), "greeter")

    def testMainOverride(self) -> None:
        with mock.patch.object(sys.modules["__main__"], "__prog__", "custom", create=True):
            self.assertEqual(program(), "custom")


if __name__ == '__main__':
    unittest.main()

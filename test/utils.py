"""
Tests for the shared helpers.

This module verifies:
- The Unset sentinel (singleton, falsy, unions, copies, finality).
- coalesce/mirror/rename semantics.
- ordinal labels used by position-first messages.
- convert(): strict whole-token conversion.
"""
import copy
import unittest
from unittest import TestCase

from argot.utils import *


class TestUnset(TestCase):
    """Behavioral tests for the Unset sentinel."""

    def testUnsetIsSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testUnsetIsFalsyButNotNone(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertEqual(repr(Unset), "Unset")

    def testUnsetSurvivesCopies(self):
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testUnsetParticipatesInUnions(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("text", str | Unset)
        self.assertNotIsInstance(3, str | Unset)

    def testUnsetTypeIsFinal(self):
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})


class TestHelpers(TestCase):
    """Behavioral tests for coalesce, rename and mirror."""

    def testCoalescePreservesFalseyValues(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertIsNone(coalesce(Unset))

    def testRenameFunctionAndDecoratorForms(self):
        def original():
            pass

        self.assertEqual(rename(original, "renamed").__name__, "renamed")

        @rename("decorated")
        def other():
            pass

        self.assertEqual(other.__qualname__, "decorated")

    def testRenameRejectsBadArity(self):
        with self.assertRaises(TypeError):
            rename()

    def testMirrorReturnsImmutableCopies(self):
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = [1, [2, 3]]

        holder = Holder()
        self.assertEqual(holder.items, (1, (2, 3)))
        with self.assertRaises(AttributeError):
            holder.items = ()


class TestOrdinal(TestCase):
    """Ordinal labels for 1-based positions."""

    def testOrdinalWords(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(3), "third")
        self.assertEqual(ordinal(10), "tenth")

    def testOrdinalSuffixes(self):
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(12), "12th")
        self.assertEqual(ordinal(21), "21st")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(23), "23rd")
        self.assertEqual(ordinal(111), "111th")

    def testOrdinalRejectsNonIntegers(self):
        with self.assertRaises(TypeError):
            ordinal(True)
        with self.assertRaises(TypeError):
            ordinal("1")


class TestConvert(TestCase):
    """Strict conversion of raw tokens."""

    def testStringPassesThroughUntouched(self):
        self.assertEqual(convert(str, " padded "), " padded ")
        self.assertEqual(convert(str, ""), "")

    def testIntegerConversion(self):
        self.assertEqual(convert(int, "42"), 42)
        self.assertEqual(convert(int, "-5"), -5)

    def testWholeTokenIsConverted(self):
        with self.assertRaises(ValueError):
            convert(int, "5x")
        with self.assertRaises(ValueError):
            convert(int, " 5")

    def testBooleanLiterals(self):
        self.assertIs(convert(bool, "yes"), True)
        self.assertIs(convert(bool, "OFF"), False)
        with self.assertRaises(ValueError):
            convert(bool, "maybe")

    def testCustomConverter(self):
        self.assertEqual(convert(lambda text: text[::-1], "abc"), "cba")

    def testConvertRejectsBadArguments(self):
        with self.assertRaises(TypeError):
            convert(3, "x")
        with self.assertRaises(TypeError):
            convert(int, 3)


if __name__ == "__main__":
    unittest.main()

"""
Adapters module behavioral tests.

Scope
- Validate adapt() dispatch for every declaration variant.
- Validate the capability sets of keyed and positional adapters.
- Validate that stored values reach the caller's handle.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argot import Flag, MultiFlag, Option, MultiOption, Value, MultiValue
from argot.adapters import *


class TestDispatch(TestCase):
    """adapt() picks exactly one adapter per variant."""

    def testEveryVariantHasAnAdapter(self):
        cases = [
            (Flag("-v"), FlagAdapter),
            (MultiFlag("-v"), MultiFlagAdapter),
            (Option("-n"), OptionAdapter),
            (MultiOption("-n"), MultiOptionAdapter),
            (Value(), ValueAdapter),
            (MultiValue(), MultiValueAdapter),
        ]
        for declaration, expected in cases:
            with self.subTest(declaration=declaration):
                self.assertIs(type(adapt(declaration)), expected)

    def testKeyedAndPositionalFamilies(self):
        self.assertIsInstance(adapt(Option("-n")), KeyAdapter)
        self.assertIsInstance(adapt(MultiValue()), ArgumentAdapter)

    def testNonDeclarationRejected(self):
        with self.assertRaises(TypeError):
            adapt("-n")

    def testKeyedWithoutKeysRejected(self):
        with self.assertRaises(TypeError):
            adapt(Option(type=int))


class TestKeyAdapter(TestCase):
    """Keyed adapters over flags and options."""

    def testFlagCapabilities(self):
        flag = Flag("-v", "--verbose").help("talk more")
        adapter = adapt(flag)
        self.assertFalse(adapter.has_argument())
        self.assertFalse(adapter.is_required())
        self.assertIsNone(adapter.metavar())
        self.assertEqual(adapter.help(), "talk more")
        self.assertEqual(adapter.first_key(), "-v")
        self.assertEqual(adapter.key_string(), "-v, --verbose")
        self.assertEqual(adapter.key_string("|"), "-v|--verbose")
        self.assertTrue(adapter.has_key("--verbose"))
        self.assertFalse(adapter.has_key("-x"))

    def testFlagRaiseReachesHandle(self):
        flag = Flag("-v")
        adapt(flag).raise_()
        self.assertTrue(flag.value)

    def testMultiFlagRaiseCounts(self):
        flag = MultiFlag("-v")
        adapter = adapt(flag)
        adapter.raise_()
        adapter.raise_()
        self.assertEqual(flag.count, 2)
        self.assertTrue(adapter.satisfied())

    def testFlagRejectsValue(self):
        with self.assertRaises(TypeError):
            adapt(Flag("-v")).add_value("x")

    def testOptionRejectsRaise(self):
        with self.assertRaises(TypeError):
            adapt(Option("-n")).raise_()

    def testOptionCapabilities(self):
        option = Option("-n", type=int).metavar("COUNT").mark_required()
        adapter = adapt(option)
        self.assertTrue(adapter.has_argument())
        self.assertTrue(adapter.is_required())
        self.assertEqual(adapter.metavar(), "COUNT")
        self.assertFalse(adapter.satisfied())

    def testOptionAddValueConverts(self):
        option = Option("-n", type=int)
        adapter = adapt(option)
        adapter.add_value("5")
        self.assertEqual(option.value, 5)
        self.assertTrue(adapter.satisfied())

    def testOptionConverterErrorPropagates(self):
        with self.assertRaises(ValueError):
            adapt(Option("-n", type=int)).add_value("five")

    def testMultiOptionAccumulates(self):
        option = MultiOption("-n", type=int)
        adapter = adapt(option)
        for text in ("1", "2", "3"):
            adapter.add_value(text)
        self.assertEqual(option.values, (1, 2, 3))


class TestArgumentAdapter(TestCase):
    """Positional adapters."""

    def testValueIsNotMulti(self):
        value = Value("FILE").mark_required().help("input file")
        adapter = adapt(value)
        self.assertFalse(adapter.multi())
        self.assertTrue(adapter.is_required())
        self.assertEqual(adapter.metavar(), "FILE")
        self.assertEqual(adapter.help(), "input file")
        adapter.add_value("a.txt")
        self.assertEqual(value.value, "a.txt")

    def testMultiValueIsMulti(self):
        values = MultiValue(type=float)
        adapter = adapt(values)
        self.assertTrue(adapter.multi())
        adapter.add_value("1.5")
        adapter.add_value("2")
        self.assertEqual(values.values, (1.5, 2.0))

    def testAdapterKeepsCopyOfHandle(self):
        value = Value()
        adapter = adapt(value)
        self.assertIsNot(adapter.declaration, value)
        adapter.add_value("x")
        self.assertEqual(value.value, "x")


if __name__ == "__main__":
    unittest.main()

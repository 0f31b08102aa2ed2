"""
Utility helpers tests (sentinel, coalescing, naming, ranges).

Scope
- Validate the Unset sentinel: singleton identity, falsy semantics, copying, finality.
- Validate coalesce/rename/mirror helpers used by the declaration layer.
- Validate option-name helpers and index/arity range parsing.

Conventions
- Test method names follow CamelCase per project convention.
"""
import copy
import pickle
import unittest
from unittest import TestCase

from argolite.utils import *


class UnsetTest(TestCase):
    """Semantic guarantees of the Unset sentinel."""

    def testSingletonIdentity(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testFalsyButDistinctFromOtherFalsyValues(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, 0)
        self.assertNotEqual(Unset, "")

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")
        self.assertEqual(str(Unset), "Unset")

    def testCopiesPreserveIdentity(self):
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(copy.deepcopy({"key": Unset})["key"], Unset)

    def testPickleRoundTripPreservesIdentity(self):
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testUnionWithTypes(self):
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("text", str | Unset))
        self.assertFalse(isinstance(1, str | Unset))

    def testSubclassingIsRejected(self):
        with self.assertRaises(TypeError):
            class Derived(UnsetType):
                pass


class CoalesceTest(TestCase):

    def testUnsetIsReplaced(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))

    def testFalsyValuesArePreserved(self):
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertEqual(coalesce("", "x"), "")
        self.assertEqual(coalesce([], [1]), [])


class RenameTest(TestCase):

    def testFunctionForm(self):
        def original():
            pass

        renamed = rename(original, "renamed")
        self.assertIs(renamed, original)
        self.assertEqual(original.__name__, "renamed")
        self.assertEqual(original.__qualname__, "renamed")

    def testDecoratorForm(self):
        @rename("stable")
        def generated():
            pass

        self.assertEqual(generated.__name__, "stable")

    def testInvalidArguments(self):
        with self.assertRaises(TypeError):
            rename(1, "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 1)
        with self.assertRaises(TypeError):
            rename()
        with self.assertRaises(TypeError):
            rename(1)


class MirrorTest(TestCase):

    def testReturnsFreshContainers(self):
        class Holder:
            items = mirror("items")
            mapping = mirror("mapping")

            def __init__(self):
                self._items = [1, [2]]
                self._mapping = {"a": {1, 2}}

        holder = Holder()
        items = holder.items
        items.append(3)
        items[1].append(4)
        self.assertEqual(holder.items, [1, [2]])
        self.assertEqual(holder.mapping, {"a": frozenset({1, 2})})

    def testIsReadOnly(self):
        class Holder:
            name = mirror("name")
            _name = "value"

        with self.assertRaises(AttributeError):
            Holder().name = "other"

    def testRejectsNonStringName(self):
        with self.assertRaises(TypeError):
            mirror(1)


class OptionNameTest(TestCase):

    def testStripDashes(self):
        self.assertEqual(strip_dashes("--verbose"), "verbose")
        self.assertEqual(strip_dashes("-v"), "v")
        self.assertEqual(strip_dashes("---x"), "-x")
        self.assertEqual(strip_dashes("plain"), "plain")

    def testPreferredNameIsFirstLongName(self):
        self.assertEqual(preferred_name(("-n", "--name", "--alias")), "--name")
        self.assertEqual(preferred_name(("-x",)), "-x")
        self.assertEqual(preferred_name(()), "<option>")

    def testIsShortName(self):
        self.assertTrue(is_short_name("-v"))
        self.assertFalse(is_short_name("--v"))
        self.assertFalse(is_short_name("-vv"))
        self.assertFalse(is_short_name("-1"))


class ParseRangeTest(TestCase):

    def testSingleValue(self):
        self.assertEqual(parse_range("0"), (0, 0))
        self.assertEqual(parse_range(" 3 "), (3, 3))

    def testBoundedAndUnbounded(self):
        self.assertEqual(parse_range("1..3"), (1, 3))
        self.assertEqual(parse_range("0..1"), (0, 1))
        self.assertEqual(parse_range("2..*"), (2, None))

    def testEmptyMeansUnspecified(self):
        self.assertIsNone(parse_range(""))
        self.assertIsNone(parse_range("   "))

    def testInvalidRanges(self):
        for text in ("x", "1..", "..2", "-1", "3..1", "1..2..3"):
            with self.subTest(text=text), self.assertRaises(ValueError):
                parse_range(text)

    def testRejectsNonString(self):
        with self.assertRaises(TypeError):
            parse_range(1)


if __name__ == "__main__":
    unittest.main()

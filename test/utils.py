"""
Utility helpers behavioral tests.

Scope
- Unset sentinel: singleton identity, falsiness, representation, sealing, unions.
- coalesce/rename/mirror: the small building blocks used across the package.

Conventions
- Test method names follow CamelCase per project convention.
- Only the public helpers are exercised; private functions are reached through them.
"""
import unittest
from unittest import TestCase

from optopus.utils import Unset, UnsetType, coalesce, rename, mirror


class TestUnset(TestCase):
    """Behavioral tests for the Unset sentinel."""

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testFalsy(self):
        self.assertFalse(Unset)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testCannotSubclass(self):
        with self.assertRaises(TypeError):
            class Derived(UnsetType):
                pass

    def testUnionInIsinstance(self):
        self.assertTrue(isinstance("text", str | Unset))
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertFalse(isinstance(3, str | Unset))


class TestCoalesce(TestCase):
    """Behavioral tests for coalesce()."""

    def testUnsetReplaced(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")

    def testUnsetDefaultsToNone(self):
        self.assertIsNone(coalesce(Unset))

    def testFalseyValuesKept(self):
        for value in (None, 0, "", [], False):
            self.assertIs(coalesce(value, "fallback"), value)


class TestRename(TestCase):
    """Behavioral tests for rename() in both forms."""

    def testDirectForm(self):
        def function():
            pass

        rename(function, "renamed")
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testDecoratorForm(self):
        @rename("decorated")
        def function():
            pass

        self.assertEqual(function.__name__, "decorated")

    def testRejectsNonCallable(self):
        with self.assertRaises(TypeError):
            rename(3, "name")

    def testRejectsWrongArity(self):
        with self.assertRaises(TypeError):
            rename()


class TestMirror(TestCase):
    """Behavioral tests for mirror() read-only properties."""

    class Holder:
        items = mirror("items")
        table = mirror("table")
        span = mirror("span")

        def __init__(self):
            self._items = [1, [2, 3]]
            self._table = {"a": [1]}
            self._span = range(3)

    def testReturnsCopies(self):
        holder = self.Holder()
        items = holder.items
        items.append(4)
        items[1].append(5)
        self.assertEqual(holder.items, [1, [2, 3]])

    def testMappingCopied(self):
        holder = self.Holder()
        holder.table["a"].append(2)
        self.assertEqual(holder.table, {"a": [1]})

    def testRangeStaysRange(self):
        self.assertIsInstance(self.Holder().span, range)

    def testReadOnly(self):
        with self.assertRaises(AttributeError):
            self.Holder().items = []

    def testRejectsNonString(self):
        with self.assertRaises(TypeError):
            mirror(3)


if __name__ == "__main__":
    unittest.main()

"""
Utilities behavioral tests.

Scope
- Unset sentinel guarantees (singleton, falsy, repr, sealed).
- coalesce() preserving falsey values other than Unset.
- rename() forms and mirror() read-only, frozen views.
"""
import unittest
from unittest import TestCase

from bindery.utils import *


class TestUnset(TestCase):
    def testSingleton(self):
        self.assertIs(Unset, UnsetType())

    def testFalsy(self):
        self.assertFalse(Unset)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testNotSubclassable(self):
        with self.assertRaises(TypeError):
            class Derived(UnsetType):  # NOQA: F-811
                pass

    def testUnionInIsinstance(self):
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("x", str | Unset))
        self.assertFalse(isinstance(1, str | Unset))


class TestCoalesce(TestCase):
    def testUnsetReplaced(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")

    def testNonePreserved(self):
        self.assertIsNone(coalesce(None, "fallback"))

    def testDefaultIsNone(self):
        self.assertIsNone(coalesce(Unset))


class TestRename(TestCase):
    def testFunctionForm(self):
        def f():
            pass

        rename(f, "inject")
        self.assertEqual(f.__name__, "inject")
        self.assertEqual(f.__qualname__, "inject")

    def testDecoratorForm(self):
        @rename("inject")
        def f():
            pass

        self.assertEqual(f.__name__, "inject")

    def testRejectsNonCallable(self):
        with self.assertRaises(TypeError):
            rename(1, "name")

    def testWrongArity(self):
        with self.assertRaises(TypeError):
            rename()


class TestMirror(TestCase):
    def testReadOnlyFrozenView(self):
        class Holder:
            names = mirror("names")

            def __init__(self):
                self._names = ["--x", "-a"]

        holder = Holder()
        self.assertEqual(holder.names, ("--x", "-a"))
        with self.assertRaises(AttributeError):
            holder.names = ()

    def testMappingViewIsReadOnly(self):
        class Holder:
            table = mirror("table")

            def __init__(self):
                self._table = {"--x": ["-a"]}

        holder = Holder()
        self.assertEqual(holder.table, {"--x": ("-a",)})
        with self.assertRaises(TypeError):
            holder.table["--y"] = ()
        self.assertEqual(holder._table, {"--x": ["-a"]})

    def testRejectsNonString(self):
        with self.assertRaises(TypeError):
            mirror(1)


if __name__ == "__main__":
    unittest.main()

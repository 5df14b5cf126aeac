"""
Evaluator module behavioral tests (injection, flags, commands, unknown arguments, faults).

Conventions
- Test method names follow CamelCase per project convention.
- Values are always minted from a catalog built by introspect(), except where the
  invariant-violation path is under test.
"""
import contextlib
import io
import unittest
from unittest import TestCase

from bindery import (
    introspect,
    evaluate,
    option,
    command,
    unknown,
    Value,
    Identifier,
    DEFAULT,
    InstantiationError,
    DispatchError,
    MissingSinkError,
    InvariantViolationError,
)


class Run:
    pass


class NeedsArgument:
    def __init__(self, argument):
        self.argument = argument


class Exploding:
    def __init__(self):
        raise RuntimeError("boom")


class Recorder:
    def __init__(self):
        self.calls = []


class Alpha(Recorder):
    @property
    def x(self):
        return self._x

    @x.setter
    @option("--x", "-a", metavar="X")
    def x(self, value):
        self.calls.append(("x", value))
        self._x = value

    @property
    def verbose(self):
        return self._verbose

    @verbose.setter
    @option("--verbose", "-v")
    def verbose(self, value):
        self.calls.append(("verbose", value))
        self._verbose = value


class Beta(Recorder):
    @property
    def cmd(self):
        return self._cmd

    @cmd.setter
    @command("run", Run, priority=1)
    def cmd(self, value):
        self.calls.append(("cmd", value))
        self._cmd = value


class Broken(Recorder):
    @property
    def needy(self):
        return None

    @needy.setter
    @command("needy", NeedsArgument)
    @command("explode", Exploding)
    def needy(self, value):
        self.calls.append(("needy", value))

    @property
    def fragile(self):
        return None

    @fragile.setter
    @option("--fragile", metavar="VALUE")
    def fragile(self, value):
        raise ValueError("rejected %r" % value)


class Sink(Recorder):
    @property
    def rest(self):
        return None

    @rest.setter
    @unknown
    def rest(self, value):
        self.calls.append(("rest", list(value)))


class DerivedAlpha(Alpha):
    pass


class ReadOnlyAlpha(Alpha):
    @property
    def x(self):
        return "fixed"


class FragileSink(Recorder):
    @property
    def rest(self):
        return None

    @rest.setter
    @unknown
    def rest(self, value):
        raise OSError("cannot store %d arguments" % len(value))


class ReadOnlySink(Sink):
    @property
    def rest(self):
        return ()


class TestEvaluate(TestCase):
    def setUp(self):
        self.catalog = introspect(Alpha, Beta)

    def value(self, token, value=None):
        return Value(self.catalog.resolve(token), value)

    def testOptionOnlyReachesDeclaringType(self):
        a, b = Alpha(), Beta()
        evaluate([self.value("--x", "hello")], a, b)
        self.assertEqual(a.calls, [("x", "hello")])
        self.assertEqual(b.calls, [])

    def testAbsentValueIsTrue(self):
        a = Alpha()
        evaluate([self.value("--verbose")], a)
        self.assertIs(a.verbose, True)

    def testFalseyValuesArePreserved(self):
        a = Alpha()
        evaluate([self.value("--x", ""), self.value("-a", 0)], a)
        self.assertEqual(a.calls, [("x", ""), ("x", 0)])

    def testEachIdentifierInvokedOncePerValue(self):
        a, b = Alpha(), Beta()
        values = [Value(entry.identifier, "v") for entry in self.catalog]
        evaluate(values, a, b)
        self.assertEqual([name for name, _ in a.calls], ["x", "verbose"])
        self.assertEqual([name for name, _ in b.calls], ["cmd"])

    def testEveryAcceptingTargetReceivesValue(self):
        first, second = Alpha(), DerivedAlpha()
        evaluate([self.value("--x", "shared")], first, second)
        self.assertEqual(first.x, "shared")
        self.assertEqual(second.x, "shared")

    def testCommandInstancesAreFresh(self):
        b = Beta()
        evaluate([self.value("run"), self.value("run")], b)
        (_, first), (_, second) = b.calls
        self.assertIsInstance(first, Run)
        self.assertIsInstance(second, Run)
        self.assertIsNot(first, second)

    def testCommandInstanceIgnoresRawValue(self):
        b = Beta()
        evaluate([self.value("run", "ignored")], b)
        self.assertIsInstance(b.cmd, Run)

    def testSetterBoundAtIntrospection(self):
        target = ReadOnlyAlpha()
        evaluate([self.value("--x", "hidden")], target)
        self.assertEqual(target.calls, [("x", "hidden")])
        self.assertEqual(target._x, "hidden")
        self.assertEqual(target.x, "fixed")

    def testEmptyValuesDoNothing(self):
        a = Alpha()
        evaluate([], a)
        self.assertEqual(a.calls, [])


class TestUnknownArguments(TestCase):
    def setUp(self):
        self.catalog = introspect(Alpha, Sink)

    def testDeliveredOnceInOrder(self):
        a, sink = Alpha(), Sink()
        evaluate([
            Value(DEFAULT, "first"),
            Value(self.catalog.resolve("--x"), "x"),
            Value(DEFAULT, 2),
        ], a, sink)
        self.assertEqual(sink.calls, [("rest", ["first", "2"])])
        self.assertEqual(a.calls, [("x", "x")])

    def testNoUnknownNoDelivery(self):
        sink = Sink()
        evaluate([Value(self.catalog.resolve("--x"), "x")], sink)
        self.assertEqual(sink.calls, [])

    def testOnlyFirstSinkReceives(self):
        first, second = Sink(), Sink()
        evaluate([Value(DEFAULT, "file.txt")], first, second)
        self.assertEqual(first.calls, [("rest", ["file.txt"])])
        self.assertEqual(second.calls, [])

    def testMissingSinkRaises(self):
        a = Alpha()
        with self.assertRaises(MissingSinkError):
            evaluate([Value(self.catalog.resolve("--x"), "x"), Value(DEFAULT, "file.txt")], a)
        # values applied before the failure are kept
        self.assertEqual(a.calls, [("x", "x")])

    def testMissingSinkInShellModeExits(self):
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            evaluate([Value(DEFAULT, "file.txt")], Alpha(), shell=True, colorful=False)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("missing sink", stderr.getvalue().lower())

    def testSinkFailureIsDispatchError(self):
        with self.assertRaises(DispatchError) as context:
            evaluate([Value(DEFAULT, "file.txt")], FragileSink())
        self.assertIsInstance(context.exception.__cause__, OSError)

    def testSinkFailureInShellModeExits(self):
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            evaluate([Value(DEFAULT, "file.txt")], FragileSink(), shell=True, colorful=False)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("failed dispatch", stderr.getvalue().lower())

    def testSinkResolvedOnTargetType(self):
        # the override drops the setter, so no sink is left on the target
        with self.assertRaises(MissingSinkError):
            evaluate([Value(DEFAULT, "file.txt")], ReadOnlySink())


class TestFaults(TestCase):
    def setUp(self):
        self.catalog = introspect(Alpha, Broken)

    def testForeignIdentifierIsInvariantViolation(self):
        with self.assertRaises(InvariantViolationError):
            evaluate([Value(Identifier(), "x")], Alpha())

    def testNonIdentifierIsInvariantViolation(self):
        with self.assertRaises(InvariantViolationError):
            evaluate([Value("--x", "x")], Alpha())

    def testDefaultWithoutValueIsInvariantViolation(self):
        with self.assertRaises(InvariantViolationError):
            evaluate([Value(DEFAULT)], Alpha())

    def testIdentifierFromAnotherCatalogStillDispatches(self):
        a = Alpha()
        evaluate([Value(introspect(Alpha).resolve("--x"), "x")], a)
        self.assertEqual(a.x, "x")

    def testCommandWithoutNoArgumentConstructor(self):
        with self.assertRaises(InstantiationError) as context:
            evaluate([Value(self.catalog.resolve("needy"))], Broken())
        self.assertIsInstance(context.exception.__cause__, TypeError)

    def testCommandConstructorRaises(self):
        with self.assertRaises(InstantiationError) as context:
            evaluate([Value(self.catalog.resolve("explode"))], Broken())
        self.assertIsInstance(context.exception.__cause__, RuntimeError)

    def testSetterFailureIsDispatchError(self):
        a, broken = Alpha(), Broken()
        with self.assertRaises(DispatchError) as context:
            evaluate([
                Value(self.catalog.resolve("--x"), "kept"),
                Value(self.catalog.resolve("--fragile"), "bad"),
                Value(self.catalog.resolve("--x"), "never"),
            ], a, broken)
        self.assertIsInstance(context.exception.__cause__, ValueError)
        self.assertEqual(a.calls, [("x", "kept")])


if __name__ == "__main__":
    unittest.main()

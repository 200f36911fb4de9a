"""
Parser behavioral tests.

Scope
- Registration: opt() collisions, constraints over unknown options, settings validation.
- Scanning: flags, parameters, inline values, short clusters, negation, terminators,
  stop words, stop-on-unknown, string argv.
- Resolution: exact and inexact matching, ambiguity, suggestions, ignored unknowns.
- Values: shapes of single/multi/multi-value options, defaults, <name>_given, leftovers.
- Constraints: depends, conflicts, either and required options.
- Subcommands: dispatch, nested errors and help signals.

Conventions
- Test method names follow CamelCase per project convention.
- Every parse() call passes argv explicitly; sys.argv is never consulted.
"""
import datetime
import itertools
import re
import sys
import unittest
from unittest import TestCase

from optopus.faults import *
from optopus.option import Option
from optopus.parser import *


class TestRegistration(TestCase):
    """opt() and friends."""

    def setUp(self):
        self.parser = Parser()

    def testOptReturnsOption(self):
        option = self.parser.opt("count", "how many", type="int")
        self.assertIsInstance(option, Option)
        self.assertIs(self.parser.specs["count"].type, option.type)

    def testDuplicateName(self):
        self.parser.opt("arg")
        with self.assertRaises(RegistrationError) as context:
            self.parser.opt("arg")
        self.assertEqual(str(context.exception), "you already have an argument named 'arg'")

    def testDuplicateLong(self):
        self.parser.opt("one", long="same")
        with self.assertRaises(RegistrationError) as context:
            self.parser.opt("two", long="--same")
        self.assertIn("long option name '--same' is already taken", str(context.exception))

    def testAliasCollidesWithLong(self):
        self.parser.opt("cat")
        with self.assertRaises(RegistrationError):
            self.parser.opt("dog", alt="cat")

    def testDuplicateShort(self):
        self.parser.opt("one", short="x")
        with self.assertRaises(RegistrationError) as context:
            self.parser.opt("two", short="-x")
        self.assertIn("short option name '-x' is already taken", str(context.exception))

    def testConstraintOverUnknownOption(self):
        self.parser.opt("one")
        with self.assertRaises(RegistrationError) as context:
            self.parser.depends("one", "nope")
        self.assertEqual(str(context.exception), "unknown option 'nope'")

    def testTextSetters(self):
        self.assertIsNone(self.parser.version())
        self.parser.version("tool 1.2.3")
        self.parser.usage("[options] FILE")
        self.parser.synopsis("Does things.")
        self.assertEqual(self.parser.version(), "tool 1.2.3")
        self.assertEqual(self.parser.usage(), "[options] FILE")
        self.assertEqual(self.parser.synopsis(), "Does things.")
        with self.assertRaises(TypeError):
            self.parser.banner(3)

    def testStopOnFlattensWords(self):
        self.parser.stop_on(["add", "rm"], "ls")
        self.assertEqual(self.parser.stop_words, ["add", "rm", "ls"])

    def testSetupFunction(self):
        def setup(parser, default):
            parser.opt("count", "how many", default=default)

        parser = Parser(setup, 7)
        self.assertEqual(parser.parse([])["count"], 7)

    def testSettingsValidated(self):
        with self.assertRaises(TypeError):
            Parser(bogus=True)
        with self.assertRaises(TypeError):
            Parser(inexact_match="yes")
        self.assertTrue(Parser(inexact_match=True).settings.inexact_match)
        self.assertTrue(Settings().suggestions)


class TestScanning(TestCase):
    """Flags, parameters and leftovers."""

    def setUp(self):
        self.parser = Parser()

    def testUnknownArgument(self):
        with self.assertRaises(UnknownArgumentError) as context:
            self.parser.parse(["--arg"])
        self.assertEqual(str(context.exception), "unknown argument '--arg'")

    def testFlag(self):
        self.parser.opt("arg")
        self.assertIs(self.parser.parse(["--arg"])["arg"], True)
        self.assertIs(self.parser.parse([])["arg"], False)

    def testAutomaticShort(self):
        self.parser.opt("arg")
        self.assertIs(self.parser.parse(["-a"])["arg"], True)
        self.assertEqual(self.parser.specs["arg"].short, "a")

    def testAutomaticShortSkipsTakenAndInvalid(self):
        self.parser.opt("arg", short="a")
        self.parser.opt("apple")
        self.parser.opt("1st")
        self.parser.parse([])
        self.assertEqual(self.parser.specs["apple"].short, "p")
        self.assertEqual(self.parser.specs["1st"].short, "s")
        self.assertEqual(self.parser.specs["help"].short, "h")

    def testNoShortOpts(self):
        parser = Parser(no_short_opts=True)
        parser.opt("arg")
        with self.assertRaises(UnknownArgumentError):
            parser.parse(["-a"])
        self.assertIs(parser.parse(["--arg"])["arg"], True)

    def testShortNoneIsNotAssigned(self):
        self.parser.opt("arg", short=None)
        self.parser.parse([])
        self.assertIsNone(self.parser.specs["arg"].short)

    def testLeftovers(self):
        self.parser.opt("arg")
        values = self.parser.parse(["a", "--arg", "b"])
        self.assertEqual(values.leftovers, ("a", "b"))
        self.assertEqual(self.parser.leftovers, ["a", "b"])

    def testSingleParameter(self):
        self.parser.opt("name", type="string")
        values = self.parser.parse(["--name", "bob", "file"])
        self.assertEqual(values["name"], "bob")
        self.assertEqual(values.leftovers, ("file",))

    def testInlineValue(self):
        self.parser.opt("name", type="string")
        self.assertEqual(self.parser.parse(["--name=bob smith"])["name"], "bob smith")
        self.assertEqual(self.parser.parse(["--name=a=b"])["name"], "a=b")

    def testEmptyInlineValueWarns(self):
        self.parser.opt("name", type="string")
        with self.assertWarns(EmptyInlineValueWarning):
            values = self.parser.parse(["--name="])
        self.assertEqual(values["name"], "")

    def testStringArgv(self):
        self.parser.opt("name", type="string")
        values = self.parser.parse("--name 'bob smith' file")
        self.assertEqual(values["name"], "bob smith")
        self.assertEqual(values.leftovers, ("file",))

    def testArgvMustHoldStrings(self):
        with self.assertRaises(TypeError):
            self.parser.parse(["--arg", 3])
        with self.assertRaises(TypeError):
            self.parser.parse(3)

    def testNegativeNumbersAreParameters(self):
        self.parser.opt("num", type="int")
        self.parser.opt("ratio", type="float")
        values = self.parser.parse(["--num", "-5", "--ratio", "-.5"])
        self.assertEqual(values["num"], -5)
        self.assertEqual(values["ratio"], -0.5)

    def testMissingParameter(self):
        self.parser.opt("num", type="int")
        with self.assertRaises(MissingParameterError) as context:
            self.parser.parse(["--num"])
        self.assertEqual(str(context.exception), "option '--num' needs a parameter")

    def testMissingParameterUsesDefault(self):
        self.parser.opt("num", default=3)
        values = self.parser.parse(["--num"])
        self.assertEqual(values["num"], 3)
        self.assertTrue(values["num_given"])

    def testUncastableParameter(self):
        self.parser.opt("num", type="int")
        with self.assertRaises(UncastableParameterError) as context:
            self.parser.parse(["--num", "abc"])
        self.assertEqual(str(context.exception), "option '--num' needs an integer")
        self.assertIs(context.exception.options["parser"], self.parser)

    def testIntegerRejectsFractions(self):
        self.parser.opt("opt", type="int")
        with self.assertRaises(UncastableParameterError):
            self.parser.parse(["--opt", "4.2"])
        self.assertEqual(self.parser.parse(["--opt=-4"])["opt"], -4)

    def testMixedScenario(self):
        self.parser.opt("ignore", "Ignore errors")
        self.parser.opt("file", "Input file", type="string")
        self.parser.opt("volume", "Volume level", default=3.0)
        self.parser.opt("iters", "Iterations", default=5)
        values = self.parser.parse(["--file", "data.txt", "--volume", "-1"])
        self.assertIs(values["ignore"], False)
        self.assertEqual(values["file"], "data.txt")
        self.assertEqual(values["volume"], -1.0)
        self.assertIsInstance(values["volume"], float)
        self.assertEqual(values["iters"], 5)
        self.assertFalse(values["iters_given"])
        self.assertEqual(values.leftovers, ())

    def testFreshParsersAgree(self):
        def setup(parser):
            parser.opt("name", type="string", default="anon")
            parser.opt("count", default=1)
            parser.opt("ratio", type="float")
            parser.opt("tags", type="strings")
            parser.opt("when", type="date")
            parser.opt("verbose", multi=True)

        argv = ["-v", "--tags", "a", "b", "--count=7", "--when", "2024-01-15", "-v", "rest", "--", "--name"]
        first, second = Parser(setup).parse(argv), Parser(setup).parse(argv)
        self.assertEqual(dict(first), dict(second))
        self.assertEqual(first.leftovers, second.leftovers)
        self.assertEqual(first.leftovers, ("rest", "--name"))
        self.assertEqual(first["tags"], ["a", "b"])

    def testSpecifiedMultipleTimes(self):
        self.parser.opt("num", type="int")
        with self.assertRaises(DuplicatedArgumentError) as context:
            self.parser.parse(["--num", "1", "--num", "2"])
        self.assertEqual(str(context.exception), "option '--num' specified multiple times")

    def testShortClusters(self):
        self.parser.opt("alpha", short="a")
        self.parser.opt("beta", short="b")
        self.parser.opt("num", short="n", type="int")
        values = self.parser.parse(["-abn", "3", "rest"])
        self.assertTrue(values["alpha"])
        self.assertTrue(values["beta"])
        self.assertEqual(values["num"], 3)
        self.assertEqual(values.leftovers, ("rest",))

    def testParameterInsideClusterIsMissing(self):
        self.parser.opt("alpha", short="a")
        self.parser.opt("num", short="n", type="int")
        with self.assertRaises(MissingParameterError):
            self.parser.parse(["-na", "3"])

    def testClusterOfSameOption(self):
        self.parser.opt("cat", short=["c", "C"])
        with self.assertRaises(DuplicatedArgumentError):
            self.parser.parse(["-cC"])
        self.assertTrue(self.parser.parse(["-C"])["cat"])

    def testNegation(self):
        self.parser.opt("color", default=True)
        self.assertIs(self.parser.parse(["--no-color"])["color"], False)
        self.assertIs(self.parser.parse(["--color"])["color"], True)
        self.assertIs(self.parser.parse([])["color"], True)

    def testNegativelyNamedFlag(self):
        self.parser.opt("no_cache")
        values = self.parser.parse(["--no-cache"])
        self.assertIs(values["no_cache"], True)
        values = self.parser.parse(["--cache"])
        self.assertIs(values["no_cache"], False)
        self.assertTrue(values["no_cache_given"])

    def testDoubleNegation(self):
        self.parser.opt("color")
        with self.assertRaises(MalformedArgumentError) as context:
            self.parser.parse(["--no-no-color"])
        self.assertEqual(str(context.exception), "invalid argument syntax: '--no-no-color'")

    def testInvalidSyntax(self):
        with self.assertRaises(MalformedArgumentError) as context:
            self.parser.parse(["---x"])
        self.assertEqual(str(context.exception), "invalid argument syntax: '---x'")

    def testTerminator(self):
        self.parser.opt("verbose")
        values = self.parser.parse(["--verbose", "--", "--verbose", "x"])
        self.assertTrue(values["verbose"])
        self.assertEqual(values.leftovers, ("--verbose", "x"))

    def testStopWords(self):
        self.parser.opt("verbose")
        self.parser.stop_on("sub")
        values = self.parser.parse(["--verbose", "sub", "--other"])
        self.assertEqual(values.leftovers, ("sub", "--other"))

    def testStopWordEndsParameters(self):
        self.parser.opt("nums", type="ints")
        self.parser.stop_on("sub")
        values = self.parser.parse(["--nums", "1", "2", "sub", "3"])
        self.assertEqual(values["nums"], [1, 2])
        self.assertEqual(values.leftovers, ("sub", "3"))

    def testStopOnUnknown(self):
        self.parser.opt("verbose")
        self.parser.stop_on_unknown()
        values = self.parser.parse(["--verbose", "file", "--verbose"])
        self.assertEqual(values.leftovers, ("file", "--verbose"))


class TestShapes(TestCase):
    """Value shapes for single, multi-occurrence and multi-value options."""

    def setUp(self):
        self.parser = Parser()

    def testMultiOccurrence(self):
        self.parser.opt("num", type="int", multi=True)
        self.assertEqual(self.parser.parse(["--num", "1", "--num", "2"])["num"], [1, 2])
        self.assertEqual(self.parser.parse([])["num"], [])

    def testMultiValue(self):
        self.parser.opt("nums", type="ints")
        self.parser.opt("verbose")
        values = self.parser.parse(["--nums", "1", "2", "--verbose", "3"])
        self.assertEqual(values["nums"], [1, 2])
        self.assertTrue(values["verbose"])
        self.assertEqual(values.leftovers, ("3",))

    def testMultiValueMultiOccurrence(self):
        self.parser.opt("nums", type="ints", multi=True)
        self.assertEqual(self.parser.parse(["--nums", "1", "2", "--nums", "3"])["nums"], [[1, 2], [3]])

    def testArrayDefaultImpliesMultiValue(self):
        self.parser.opt("words", default=["a", "b"])
        self.assertEqual(self.parser.parse([])["words"], ["a", "b"])
        self.assertEqual(self.parser.parse(["--words", "x", "y"])["words"], ["x", "y"])

    def testMultiWithArrayDefault(self):
        self.parser.opt("arg", default=["potato"], multi=True)
        values = self.parser.parse(["--arg", "one", "two"])
        self.assertEqual(values["arg"], ["one"])
        self.assertEqual(values.leftovers, ("two",))
        self.assertEqual(self.parser.parse(["--arg", "one", "--arg", "two"])["arg"], ["one", "two"])
        self.assertEqual(self.parser.parse([])["arg"], ["potato"])

    def testDefaultsAreCopies(self):
        self.parser.opt("words", default=["a"])
        self.parser.parse([])["words"].append("b")
        self.assertEqual(self.parser.parse([])["words"], ["a"])

    def testDate(self):
        self.parser.opt("when", type="date")
        self.assertEqual(self.parser.parse(["--when", "2024-01-15"])["when"], datetime.date(2024, 1, 15))

    def testIOStdin(self):
        self.parser.opt("input", type="io")
        self.assertIs(self.parser.parse(["--input", "-"])["input"], sys.stdin)

    def testPermitted(self):
        self.parser.opt("fruit", type="string", permitted=["apple", "pear"])
        self.assertEqual(self.parser.parse(["--fruit", "pear"])["fruit"], "pear")
        with self.assertRaises(UnpermittedValueError) as context:
            self.parser.parse(["--fruit", "kiwi"])
        self.assertEqual(str(context.exception), "option '--fruit' only accepts one of: apple, pear")

    def testPermittedPattern(self):
        self.parser.opt("tag", type="strings", permitted=re.compile(r"^v\d+$"))
        self.assertEqual(self.parser.parse(["--tag", "v1", "v2"])["tag"], ["v1", "v2"])
        with self.assertRaises(UnpermittedValueError):
            self.parser.parse(["--tag", "v1", "x"])


class TestStringflag(TestCase):
    """Options whose parameter may be left out."""

    def setUp(self):
        self.parser = Parser()
        self.parser.opt("xyz", type="stringflag")
        self.parser.opt("abc", type="flag")

    def testUnset(self):
        values = self.parser.parse([])
        self.assertIs(values["xyz"], False)
        self.assertFalse(values["xyz_given"])

    def testAsFlag(self):
        values = self.parser.parse(["--xyz", "--abc"])
        self.assertIs(values["xyz"], True)
        self.assertTrue(values["abc"])

    def testAsString(self):
        self.assertEqual(self.parser.parse(["--xyz", "abcd"])["xyz"], "abcd")

    def testNegated(self):
        values = self.parser.parse(["--no-xyz"])
        self.assertIs(values["xyz"], False)
        self.assertTrue(values["xyz_given"])

    def testStringDefault(self):
        parser = Parser()
        parser.opt("log", type="stringflag", default="output.log")
        self.assertEqual(parser.parse([])["log"], "output.log")
        self.assertEqual(parser.parse(["--log"])["log"], "output.log")
        self.assertEqual(parser.parse(["--log", "other.log"])["log"], "other.log")
        self.assertIs(parser.parse(["--no-log"])["log"], False)

    def testFalseDefault(self):
        parser = Parser()
        parser.opt("log", type="stringflag", default=False)
        self.assertIs(parser.parse(["--log"])["log"], True)

    def testMulti(self):
        parser = Parser()
        parser.opt("xyz", type="stringflag", multi=True)
        parser.opt("ghi", type="stringflag", multi=True, default=["gg", "hh"])
        parser.opt("abc", type="string", multi=True)
        values = parser.parse(["--xyz", "dog", "--xyz", "cat"])
        self.assertEqual(values["xyz"], ["dog", "cat"])
        self.assertEqual(values["abc"], [])
        self.assertEqual(values["ghi"], ["gg", "hh"])
        self.assertEqual(parser.parse(["--xyz", "--xyz", "--xyz"])["xyz"], [True, True, True])
        self.assertEqual(parser.parse(["--xyz", "--xyz", "dog", "--xyz", "cat"])["xyz"], [True, "dog", "cat"])
        self.assertEqual(parser.parse(["--xyz", "--ghi", "yy", "--ghi", "zz"])["ghi"], ["yy", "zz"])


class TestResolution(TestCase):
    """Inexact matching, suggestions and ignored unknowns."""

    def testInexactMatch(self):
        parser = Parser(inexact_match=True)
        parser.opt("foobar")
        parser.opt("forget")
        self.assertTrue(parser.parse(["--foob"])["foobar"])
        self.assertTrue(parser.parse(["--forg"])["forget"])

    def testExactMatchWins(self):
        parser = Parser(inexact_match=True)
        parser.opt("foo")
        parser.opt("foobar")
        values = parser.parse(["--foo"])
        self.assertTrue(values["foo"])
        self.assertFalse(values["foobar"])

    def testAmbiguous(self):
        parser = Parser(inexact_match=True)
        parser.opt("foobar")
        parser.opt("forget")
        with self.assertRaises(AmbiguousArgumentError) as context:
            parser.parse(["--fo"])
        self.assertEqual(str(context.exception), "ambiguous option '--fo' matched keys (foobar, forget)")

    def testAliasPrefixesResolveToOneOption(self):
        parser = Parser(inexact_match=True)
        parser.opt("cat", alt="catalog")
        self.assertTrue(parser.parse(["--ca"])["cat"])

    def testExactOnlyByDefault(self):
        parser = Parser()
        parser.opt("foobar")
        with self.assertRaises(UnknownArgumentError):
            parser.parse(["--foob"])

    def testAliases(self):
        parser = Parser()
        parser.opt("dog", short="d", alt=["Pooch", "--canine"])
        self.assertTrue(parser.parse(["--Pooch"])["dog"])
        self.assertTrue(parser.parse(["--canine"])["dog"])
        self.assertTrue(parser.parse(["-d"])["dog"])

    def testSuggestions(self):
        parser = Parser()
        parser.opt("verbose")
        with self.assertRaises(UnknownArgumentError) as context:
            parser.parse(["--verbos"])
        self.assertEqual(context.exception.options["suggestions"], ("--verbose",))
        self.assertIn("did you mean '--verbose'?", context.exception.options["hint"])

    def testSuggestionsDisabled(self):
        parser = Parser(suggestions=False)
        parser.opt("verbose")
        with self.assertRaises(UnknownArgumentError) as context:
            parser.parse(["--verbos"])
        self.assertEqual(context.exception.options["suggestions"], ())

    def testIgnoreInvalidOptions(self):
        parser = Parser(ignore_invalid_options=True)
        parser.opt("verbose")
        values = parser.parse(["--bogus", "x", "--verbose"])
        self.assertTrue(values["verbose"])
        self.assertEqual(values.leftovers, ("--bogus", "x"))


class TestConstraints(TestCase):
    """depends, conflicts, either and required."""

    def setUp(self):
        self.parser = Parser()
        self.parser.opt("one")
        self.parser.opt("two")
        self.parser.opt("three")

    def testDepends(self):
        self.parser.depends("one", "two")
        self.parser.parse([])
        self.parser.parse(["--one", "--two"])
        with self.assertRaises(UnmetDependencyError) as context:
            self.parser.parse(["--one"])
        self.assertEqual(str(context.exception), "--one, --two have a dependency and must be given together")

    def testConflicts(self):
        self.parser.conflicts("one", "two")
        self.parser.parse(["--one", "--three"])
        with self.assertRaises(ConflictingArgumentsError) as context:
            self.parser.parse(["--one", "--two"])
        self.assertEqual(str(context.exception), "only one of --one, --two can be given")

    def testEither(self):
        self.parser.either("one", "two", "three")
        names = ("one", "two", "three")
        for subset in itertools.chain.from_iterable(itertools.combinations(names, size) for size in range(4)):
            argv = ["--" + name for name in subset]
            with self.subTest(argv=argv):
                if len(subset) == 1:
                    values = self.parser.parse(argv)
                    self.assertEqual([name for name in names if values[name]], list(subset))
                    continue
                with self.assertRaises(EitherConstraintError) as context:
                    self.parser.parse(argv)
                self.assertEqual(str(context.exception), "one and only one of --one, --two, --three is required")

    def testRequired(self):
        parser = Parser()
        parser.opt("file", type="string", required=True)
        with self.assertRaises(MissingRequiredError) as context:
            parser.parse([])
        self.assertEqual(str(context.exception), "option --file must be specified")
        self.assertEqual(parser.parse(["--file", "a"])["file"], "a")

    def testRequiredSatisfiedByDefault(self):
        parser = Parser()
        parser.opt("count", default=0, required=True)
        self.assertEqual(parser.parse([])["count"], 0)


class TestSignals(TestCase):
    """--help and --version."""

    def testHelp(self):
        parser = Parser()
        for argv in (["--help"], ["-h"]):
            with self.subTest(argv=argv):
                with self.assertRaises(HelpNeeded) as context:
                    parser.parse(argv)
                self.assertIs(context.exception.parser, parser)

    def testHelpBeforeConstraints(self):
        parser = Parser()
        parser.opt("file", type="string", required=True)
        with self.assertRaises(HelpNeeded):
            parser.parse(["--help"])

    def testVersion(self):
        parser = Parser()
        parser.version("tool 1.0")
        with self.assertRaises(VersionNeeded):
            parser.parse(["--version"])
        self.assertIs(parser.parse([])["version"], False)

    def testNoVersionOptionWithoutVersion(self):
        with self.assertRaises(UnknownArgumentError):
            Parser().parse(["--version"])

    def testUserDefinedVersionOptionKept(self):
        parser = Parser()
        parser.version("tool 1.0")
        parser.opt("version", "Release to deploy", type="string")
        self.assertEqual(parser.parse(["--version", "2.0"])["version"], "2.0")


class TestValues(TestCase):
    """The Values mapping and callbacks."""

    def setUp(self):
        self.parser = Parser()
        self.parser.opt("num", type="int", default=1)
        self.parser.opt("verbose")

    def testMapping(self):
        values = self.parser.parse(["--num", "5", "extra"])
        self.assertEqual(values["num"], 5)
        self.assertTrue(values["num_given"])
        self.assertFalse(values["verbose_given"])
        self.assertIs(values["help"], False)
        self.assertEqual(values.get("missing", "fallback"), "fallback")
        self.assertIn("verbose", values)
        self.assertEqual(dict(values)["num"], 5)
        self.assertIs(values.parser, self.parser)
        self.assertIsNone(values.subcommand)
        self.assertIsNone(values.subcommand_values)

    def testGiven(self):
        values = self.parser.parse(["--verbose"])
        self.assertTrue(values.given("verbose"))
        self.assertFalse(values.given("num"))
        with self.assertRaises(KeyError):
            values.given("missing")

    def testReadOnly(self):
        values = self.parser.parse([])
        with self.assertRaises(TypeError):
            values["num"] = 2  # type: ignore[index]

    def testCallbacks(self):
        seen = []
        parser = Parser()
        parser.opt("num", type="int", callback=seen.append)
        parser.opt("other", type="int")
        parser.parse([])
        self.assertEqual(seen, [])
        parser.parse(["--num", "4"])
        self.assertEqual(seen, [4])
        with self.assertRaises(UncastableParameterError):
            parser.parse(["--num", "5", "--other", "x"])
        self.assertEqual(seen, [4])


class TestSubcommands(TestCase):
    """Subcommand dispatch with global options."""

    def setUp(self):
        self.parser = Parser(inexact_match=True)
        self.parser.opt("some_global_stropt", "Some global string option", type="string", short=None)
        self.parser.opt("some_global_flag", "Some global flag")
        self.parser.subcmd(
            "list", "show the list",
            lambda parser: parser.opt("all", "list all the things", type="boolean"),
        )

        def create(parser):
            parser.opt("partial", "create a partial thing", type="boolean")
            parser.opt("name", "creation name", type="string")

        self.parser.subcmd("create", "", create)

    def testNoSubcommand(self):
        with self.assertRaises(MissingSubcommandError) as context:
            self.parser.parse([])
        self.assertEqual(str(context.exception), "no subcommand provided")

    def testUnknownSubcommand(self):
        with self.assertRaises(UnknownSubcommandError) as context:
            self.parser.parse(["boom"])
        self.assertEqual(str(context.exception), "unknown subcommand 'boom'")

    def testUnknownGlobalOption(self):
        with self.assertRaises(UnknownArgumentError) as context:
            self.parser.parse(["--boom"])
        self.assertEqual(str(context.exception), "unknown argument '--boom'")
        with self.assertRaises(UnknownArgumentError) as context:
            self.parser.parse(["--all", "list", "--all"])
        self.assertEqual(str(context.exception), "unknown argument '--all'")

    def testUnknownSubcommandOption(self):
        with self.assertRaises(UnknownArgumentError) as context:
            self.parser.parse(["list", "--foo"])
        self.assertEqual(str(context.exception), "unknown argument '--foo' for command 'list'")
        with self.assertRaises(UnknownArgumentError) as context:
            self.parser.parse(["create", "--bar"])
        self.assertEqual(str(context.exception), "unknown argument '--bar' for command 'create'")

    def testSubcommandSuggestions(self):
        with self.assertRaises(UnknownArgumentError) as context:
            self.parser.parse(["--some-global-stropt", "GHI", "create", "--partul", "--name", "duck"])
        self.assertEqual(str(context.exception), "unknown argument '--partul' for command 'create'")
        self.assertEqual(context.exception.options["suggestions"], ("--partial",))

    def testDispatch(self):
        values = self.parser.parse(["--some-global-flag", "list", "--all"])
        self.assertTrue(values["some_global_flag"])
        self.assertEqual(values.subcommand, "list")
        self.assertTrue(values.subcommand_values["all"])
        self.assertEqual(values.leftovers, ())

    def testDispatchWithPrefixes(self):
        values = self.parser.parse(["--some-global-s", "GHI", "create", "--par", "--na", "duck", "file"])
        self.assertEqual(values["some_global_stropt"], "GHI")
        self.assertEqual(values.subcommand, "create")
        self.assertTrue(values.subcommand_values["partial"])
        self.assertEqual(values.subcommand_values["name"], "duck")
        self.assertEqual(values.leftovers, ("file",))

    def testSubcommandsWithoutOptions(self):
        self.assertEqual(self.parser.parse(["list"]).subcommand, "list")
        self.assertEqual(self.parser.parse(["create"]).subcommand, "create")

    def testGlobalHelp(self):
        with self.assertRaises(HelpNeeded) as context:
            self.parser.parse(["-h"])
        self.assertIs(context.exception.parser, self.parser)

    def testSubcommandHelp(self):
        with self.assertRaises(HelpNeeded) as context:
            self.parser.parse(["list", "--help"])
        self.assertIs(context.exception.parser, self.parser.subcommands["list"])

    def testSubparserInheritsSettings(self):
        self.assertTrue(self.parser.subcommands["create"].settings.inexact_match)
        self.assertIs(self.parser.subcommands["create"].parent, self.parser)

    def testSubcommandNames(self):
        with self.assertRaises(RegistrationError):
            self.parser.subcmd("list")
        with self.assertRaises(RegistrationError):
            self.parser.subcmd("  ")

    def testCallbacksWaitForDispatch(self):
        seen = []
        parser = Parser()
        parser.opt("verbose", "chatty", callback=seen.append)
        parser.subcmd("list", "show the list", lambda parser: parser.opt("all", "everything"))
        for argv, fault in (
                (["--verbose", "boom"], UnknownSubcommandError),
                (["--verbose"], MissingSubcommandError),
                (["--verbose", "list", "--bogus"], UnknownArgumentError),
        ):
            with self.subTest(argv=argv):
                with self.assertRaises(fault):
                    parser.parse(argv)
                self.assertEqual(seen, [])
        parser.parse(["--verbose", "list", "--all"])
        self.assertEqual(seen, [True])


if __name__ == "__main__":
    unittest.main()

"""
Binder behavioral tests (token loop, conversion, defaults, positionals).

Scope
- Validate option parsing: "=" and separate values, booleans, optional values,
  multi-value accumulation and splitting.
- Validate defaults, required options and the uniform error messages.
- Validate positional binding: fixed slots, defaults, varargs and arity bounds.
- Validate help/version interrupts and the "--" terminator.

Conventions
- Test method names follow CamelCase per project convention.
- Binding goes through bind(model_of(cls), instance, tokens, config).
"""
import enum
import unittest
from unittest import TestCase

from argolite import (
    command,
    model_of,
    Option,
    Parameters,
    Mixin,
    CommandConfig,
    HelpRequested,
    VersionRequested,
    UnknownOptionError,
    MissingOptionValueError,
    MissingRequiredOptionError,
    MissingRequiredParameterError,
    TooManyParametersError,
    UnexpectedParameterError,
    ConversionError,
    VerificationError,
    UnsupportedFieldTypeError,
)
from argolite.binder import bind, check_interrupt


class Color(enum.Enum):
    RED = 1
    GREEN = 2


class Celsius(float):
    pass


class OnOff:
    def convert(self, text):
        match text.lower():
            case "on":
                return True
            case "off":
                return False
        raise ValueError("Invalid on/off: " + text)


@command(name="greet", descr="Greet a person")
class Greet:
    name: str = Option("-n", "--name", descr="Name to greet", required=True)
    count: int = Option("-c", "--count", descr="Count", default="1")

    def run(self):
        pass


@command(name="flags")
class Flags:
    verbose: bool = Option("-v", "--verbose")
    turn: bool = Option("--turn", converter=OnOff())
    color: Color = Option("--color")
    level: int = Option("--level", arity="0..1", default="5")
    tags: list[str] = Option("-t", "--tag")
    numbers: list[int] = Option("--num", split=",")
    sizes: tuple[int, ...] = Option("--size", split=":")
    labels: list[str] = Option("--label", split=",", default="a,b")
    temperature: Celsius = Option("--temperature")
    port: int = Option("--port", verifier="check_port")
    ratio: float = Option("--ratio", default=0.5)

    def check_port(self, value):
        if not 0 < value < 65536:
            raise VerificationError("Port must be between 1 and 65535")

    def run(self):
        pass


class Verbosity:
    verbose: bool = Option("-v", "--verbose")
    level: int = Option("--log-level", default="2")


@command(name="tool")
class Tool:
    logging = Mixin(Verbosity)
    output: str = Option("-o", "--output")

    def run(self):
        pass


@command(name="copy")
class Copy:
    source: str = Parameters()
    files: list[str] = Parameters()

    def run(self):
        pass


@command(name="bounded")
class Bounded:
    files: list[str] = Parameters(arity="1..*", verifier=lambda files: None)

    def run(self):
        pass


@command(name="limited")
class Limited:
    files: list[str] = Parameters(arity="0..2")

    def run(self):
        pass


@command(name="single")
class Single:
    target: str = Parameters()
    mode: str = Parameters(default="fast")
    retries: int = Parameters(default="3")

    def run(self):
        pass


@command(name="optional")
class OptionalParameter:
    value: str = Parameters(arity="0..1")

    def run(self):
        pass


@command(name="empty")
class Empty:
    def run(self):
        pass


def parse(cls, *tokens, config=CommandConfig(), converters=None, agent_mode=False):
    return bind(model_of(cls), cls(), tokens, config, converters, agent_mode=agent_mode)


class TestOptions(TestCase):

    def testEqualsAndSeparateValues(self):
        greet = parse(Greet, "--name=World", "--count=1")
        self.assertEqual((greet.name, greet.count), ("World", 1))
        greet = parse(Greet, "-n", "World", "-c", "3")
        self.assertEqual((greet.name, greet.count), ("World", 3))

    def testEmptyValueAfterEquals(self):
        self.assertEqual(parse(Greet, "--name=").name, "")

    def testValueMayContainEquals(self):
        self.assertEqual(parse(Greet, "--name=a=b").name, "a=b")

    def testLastValueWins(self):
        self.assertEqual(parse(Greet, "--name=a", "-n", "b").name, "b")

    def testStringDefaultIsConverted(self):
        self.assertEqual(parse(Greet, "--name=x").count, 1)

    def testNonStringDefaultIsUsedAsIs(self):
        self.assertEqual(parse(Flags).ratio, 0.5)

    def testMissingRequiredOption(self):
        with self.assertRaises(MissingRequiredOptionError) as context:
            parse(Greet, "--count=2")
        self.assertEqual(str(context.exception), "Missing required option: --name")
        self.assertEqual(context.exception.options["name"], "--name")

    def testRequiredOptionWithDefaultIsStillRequired(self):
        @command(name="mode")
        class Mode:
            mode: str = Option("--mode", required=True, default="fast")

            def run(self):
                pass

        with self.assertRaises(MissingRequiredOptionError):
            parse(Mode)

    def testMissingValue(self):
        with self.assertRaises(MissingOptionValueError) as context:
            parse(Greet, "--name")
        self.assertEqual(str(context.exception), "Missing value for option: --name")

    def testUnknownOptionWithSuggestion(self):
        with self.assertRaises(UnknownOptionError) as context:
            parse(Flags, "--verbse")
        self.assertEqual(
            str(context.exception),
            "Unknown option: --verbse\n\n  tip: a similar argument exists: '--verbose'",
        )
        self.assertEqual(context.exception.options["suggestion"], "--verbose")
        self.assertEqual(context.exception.options["name"], "--verbse")

    def testUnknownOptionWithoutSuggestion(self):
        with self.assertRaises(UnknownOptionError) as context:
            parse(Flags, "--verbse", config=CommandConfig(suggest_similar_options=False))
        self.assertEqual(str(context.exception), "Unknown option: --verbse")
        self.assertIsNone(context.exception.options["suggestion"])

    def testUnknownNameWithValue(self):
        with self.assertRaises(UnknownOptionError) as context:
            parse(Greet, "--nam=World")
        self.assertTrue(str(context.exception).startswith("Unknown option: --nam\n"))

    def testConversionFailure(self):
        with self.assertRaises(ConversionError) as context:
            parse(Greet, "--name=x", "--count=abc")
        self.assertEqual(str(context.exception), "Invalid value for --count: abc")
        self.assertEqual(context.exception.options["field"], "count")
        self.assertEqual(context.exception.options["value"], "abc")

    def testEnumOption(self):
        self.assertIs(parse(Flags, "--color=green").color, Color.GREEN)
        with self.assertRaises(ConversionError):
            parse(Flags, "--color=blue")

    def testVerifierMethod(self):
        self.assertEqual(parse(Flags, "--port=8080").port, 8080)
        with self.assertRaises(VerificationError) as context:
            parse(Flags, "--port=0")
        self.assertEqual(str(context.exception), "Port must be between 1 and 65535")

    def testPerRunConverters(self):
        flags = parse(Flags, "--temperature=21.5", converters={Celsius: Celsius})
        self.assertEqual(flags.temperature, Celsius(21.5))

    def testUnsupportedTypeIsNotAUsageError(self):
        with self.assertRaises(UnsupportedFieldTypeError):
            parse(Flags, "--temperature=21.5")

    def testMixinValuesLandOnHolder(self):
        tool = parse(Tool, "-v", "-o", "out.txt")
        self.assertIs(tool.logging.verbose, True)
        self.assertEqual(tool.logging.level, 2)
        self.assertEqual(tool.output, "out.txt")


class TestBooleans(TestCase):

    def testBareFlagBindsTrue(self):
        self.assertIs(parse(Flags, "--verbose").verbose, True)
        self.assertIs(parse(Flags, "-v").verbose, True)

    def testAbsentFlagIsFalse(self):
        self.assertIs(parse(Flags).verbose, False)

    def testExplicitValues(self):
        self.assertIs(parse(Flags, "--verbose=false").verbose, False)
        self.assertIs(parse(Flags, "--verbose=TRUE").verbose, True)
        self.assertIs(parse(Flags, "--verbose", "false").verbose, False)
        self.assertIs(parse(Flags, "--verbose", "False").verbose, False)
        self.assertIs(parse(Flags, "--verbose", "true").verbose, True)

    def testNonBooleanNextTokenIsNotConsumed(self):
        with self.assertRaises(UnexpectedParameterError) as context:
            parse(Flags, "--verbose", "yes")
        self.assertEqual(str(context.exception), "Unexpected parameter: yes")

    def testConverterTurnsBooleanIntoValueOption(self):
        self.assertIs(parse(Flags, "--turn=on").turn, True)
        self.assertIs(parse(Flags, "--turn", "off").turn, False)
        with self.assertRaises(MissingOptionValueError):
            parse(Flags, "--turn")
        with self.assertRaises(ConversionError) as context:
            parse(Flags, "--turn=maybe")
        self.assertEqual(str(context.exception), "Invalid value for --turn: maybe")


class TestOptionalValues(TestCase):

    def testBareOptionUsesDefault(self):
        self.assertEqual(parse(Flags, "--level").level, 5)

    def testExplicitValue(self):
        self.assertEqual(parse(Flags, "--level=7").level, 7)

    def testAbsentOptionUsesDefault(self):
        self.assertEqual(parse(Flags).level, 5)

    def testNextTokenIsNotConsumed(self):
        with self.assertRaises(UnexpectedParameterError):
            parse(Flags, "--level", "7")


class TestMultiValues(TestCase):

    def testRepeatedOccurrencesAccumulate(self):
        self.assertEqual(parse(Flags, "-t", "a", "--tag=b", "-t", "c").tags, ["a", "b", "c"])

    def testAbsentMultiValueIsEmpty(self):
        self.assertEqual(parse(Flags).tags, [])

    def testSplitAndConvertElements(self):
        self.assertEqual(parse(Flags, "--num=1,2", "--num", "3").numbers, [1, 2, 3])
        self.assertEqual(parse(Flags, "--size=1:2").sizes, (1, 2))

    def testStringDefaultIsSplit(self):
        self.assertEqual(parse(Flags).labels, ["a", "b"])
        self.assertEqual(parse(Flags, "--label=c").labels, ["c"])

    def testElementConversionFailure(self):
        with self.assertRaises(ConversionError) as context:
            parse(Flags, "--num=1,x")
        self.assertEqual(str(context.exception), "Invalid value for --num: x")

    def testVerifierSeesWholeCollection(self):
        seen = []

        @command(name="collect")
        class Collect:
            values: list[int] = Option("--value", verifier=seen.append)

            def run(self):
                pass

        parse(Collect, "--value=1", "--value=2")
        self.assertEqual(seen, [[1, 2]])


class TestPositionals(TestCase):

    def testFixedAndVarargs(self):
        copy = parse(Copy, "a", "b", "c")
        self.assertEqual((copy.source, copy.files), ("a", ["b", "c"]))

    def testVarargsMayBeEmpty(self):
        copy = parse(Copy, "a")
        self.assertEqual((copy.source, copy.files), ("a", []))

    def testMissingRequiredParameter(self):
        with self.assertRaises(MissingRequiredParameterError) as context:
            parse(Copy)
        self.assertEqual(str(context.exception), "Missing required parameter: <source>")

    def testVarargsMinimum(self):
        self.assertEqual(parse(Bounded, "x").files, ["x"])
        with self.assertRaises(MissingRequiredParameterError) as context:
            parse(Bounded)
        self.assertEqual(str(context.exception), "Missing required parameter: <files>")

    def testParameterDefaults(self):
        single = parse(Single, "target")
        self.assertEqual((single.target, single.mode, single.retries), ("target", "fast", 3))
        single = parse(Single, "target", "safe", "5")
        self.assertEqual((single.target, single.mode, single.retries), ("target", "safe", 5))

    def testTooManyParameters(self):
        with self.assertRaises(TooManyParametersError) as context:
            parse(Single, "a", "b", "4", "extra")
        self.assertEqual(str(context.exception), "Too many parameters: extra")
        self.assertNotIsInstance(context.exception, UnexpectedParameterError)

    def testBoundedVarargsRejectsExtraPositionals(self):
        self.assertEqual(parse(Limited, "a", "b").files, ["a", "b"])
        with self.assertRaises(TooManyParametersError) as context:
            parse(Limited, "a", "b", "c")
        self.assertEqual(str(context.exception), "Too many parameters: c")
        with self.assertRaises(TooManyParametersError):
            parse(OptionalParameter, "v", "w")

    def testUnexpectedParameter(self):
        with self.assertRaises(UnexpectedParameterError) as context:
            parse(Empty, "stray")
        self.assertEqual(str(context.exception), "Unexpected parameter: stray")
        self.assertIsInstance(context.exception, TooManyParametersError)

    def testOptionalParameterWithoutDefault(self):
        self.assertIsNone(parse(OptionalParameter).value)
        self.assertEqual(parse(OptionalParameter, "v").value, "v")

    def testParameterConversionFailure(self):
        with self.assertRaises(ConversionError) as context:
            parse(Single, "t", "m", "many")
        self.assertEqual(str(context.exception), "Invalid value for <retries>: many")

    def testTerminatorMakesDashedTokensPositional(self):
        self.assertEqual(parse(OptionalParameter, "--", "-42").value, "-42")
        self.assertEqual(parse(OptionalParameter, "--", "--not-an-option").value, "--not-an-option")

    def testOptionsAndPositionalsInterleave(self):
        @command(name="mixed")
        class Mixed:
            verbose: bool = Option("-v")
            files: list[str] = Parameters()

            def run(self):
                pass

        mixed = parse(Mixed, "a", "-v", "b")
        self.assertEqual((mixed.verbose, mixed.files), (True, ["a", "b"]))


class TestInterrupts(TestCase):

    def testHelpBeatsMissingRequiredOption(self):
        with self.assertRaises(HelpRequested):
            parse(Greet, "--help")
        with self.assertRaises(VersionRequested):
            parse(Greet, "-V")

    def testHelpIsRecognizedAfterTerminator(self):
        with self.assertRaises(HelpRequested):
            parse(OptionalParameter, "--", "-h")

    def testBareWordsOnlyInAgentMode(self):
        self.assertEqual(parse(OptionalParameter, "help").value, "help")
        with self.assertRaises(HelpRequested):
            parse(OptionalParameter, "help", agent_mode=True)
        with self.assertRaises(VersionRequested):
            parse(OptionalParameter, "version", agent_mode=True)

    def testCheckInterrupt(self):
        check_interrupt("--name")
        check_interrupt("help")
        with self.assertRaises(HelpRequested) as context:
            check_interrupt("-h")
        self.assertEqual(context.exception.options["token"], "-h")
        with self.assertRaises(VersionRequested):
            check_interrupt("--version")


if __name__ == "__main__":
    unittest.main()

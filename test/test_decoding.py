# python
"""
Typed and dynamic decoder tests.

Scope
- Typed path: parse()/TypedLineDecoder over single, multiple, mixed and complex
  argument lines, independence from keyed order, and positional fill order.
- Dynamic path: resolve_line()/LineDecoder with a registry, case-insensitive
  names, record defaults and unknown types (with suggestions).
- Fault surface: ArityError, UnknownFieldError, ValueDecodeError (cause chained)
  and UnsupportedOperationError for every unsupported decoder operation.
- Decoder injection: a custom value decoder replaces the default notation.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import dataclasses
import itertools
import unittest
from unittest import TestCase

from typeline import (
    ArgumentMap,
    ArityError,
    FaultCode,
    GrammarError,
    LineDecoder,
    NotationError,
    RegistryVisitor,
    SingleEntryMap,
    StructVisitor,
    TypedLineDecoder,
    TypeNotFoundError,
    TypeRegistry,
    UnknownFieldError,
    UnsupportedOperationError,
    ValueDecodeError,
    decode,
    decode_untyped,
    parse,
    resolve_line,
    shape_of,
)


@dataclasses.dataclass
class SetGold:
    gold: int


@dataclasses.dataclass
class TestSimpleArgs:
    __test__ = False

    arg0: int
    arg1: str


@dataclasses.dataclass
class ComplexInput:
    number_input: int | None
    text_input: str
    gold: SetGold


@dataclasses.dataclass
class Triple:
    a: int
    b: int
    c: int


@dataclasses.dataclass
class Words:
    first: str
    second: str


@dataclasses.dataclass
class SetGoldReflect:
    gold: int = 0


@dataclasses.dataclass
class ReflectMultiArgs:
    arg0: int = 0
    arg1: str = ""
    arg2: SetGoldReflect = dataclasses.field(default_factory=SetGoldReflect)


@dataclasses.dataclass
class Link:
    url: str
    mirror: str | None = None


@dataclasses.dataclass
class Maybe:
    value: int | None
    count: int = 0


class UpperDecoder:
    """Value decoder that upper-cases every raw text and records its calls."""

    def __init__(self):
        self.calls = []

    def decode(self, text, shape):
        self.calls.append((text, shape))
        return text.upper()


class RejectingDecoder:
    def decode(self, text, shape):
        raise ValueError("rejected %s" % text)


class TestTypedDecoding(TestCase):
    """Behavioral tests for parse() and TypedLineDecoder."""

    def testSinglePositional(self):
        self.assertEqual(parse(SetGold, "100"), SetGold(100))

    def testSingleKeyed(self):
        self.assertEqual(parse(SetGold, "--gold 100"), SetGold(100))

    def testMultiplePositionals(self):
        self.assertEqual(parse(TestSimpleArgs, '100 "200 "'), TestSimpleArgs(100, "200 "))

    def testMultipleKeyed(self):
        self.assertEqual(parse(TestSimpleArgs, '--arg1 "200 " --arg0 100'), TestSimpleArgs(100, "200 "))

    def testMixedPositionalAndKeyed(self):
        self.assertEqual(parse(TestSimpleArgs, '100 --arg1 "200 "'), TestSimpleArgs(100, "200 "))

    def testComplexInput(self):
        value = parse(ComplexInput, 'Some(100) --text_input "Some text" --gold (gold : 200) ')
        self.assertEqual(value, ComplexInput(100, "Some text", SetGold(200)))

    def testKeyedOrderDoesNotChangeTheResult(self):
        arguments = ["--a 1", "--b 2", "--c 3"]
        for permutation in itertools.permutations(arguments):
            with self.subTest(line=" ".join(permutation)):
                self.assertEqual(parse(Triple, " ".join(permutation)), Triple(1, 2, 3))

    def testPositionalsFillInSchemaOrder(self):
        self.assertEqual(parse(Words, "b a"), Words("b", "a"))
        self.assertEqual(parse(Words, "a b"), Words("a", "b"))

    def testBareValuesForOptionalStrings(self):
        self.assertEqual(parse(Link, "http://a.example"), Link("http://a.example"))
        self.assertEqual(
            parse(Link, "http://a.example --mirror http://b.example"),
            Link("http://a.example", "http://b.example")
        )
        self.assertEqual(parse(Link, "x http://b.example"), Link("x", "http://b.example"))
        self.assertEqual(parse(Link, "x --mirror a,b"), Link("x", "a,b"))
        self.assertEqual(parse(Link, "x --mirror None"), Link("x"))
        self.assertEqual(parse(Link, "x --mirror Some(y)"), Link("x", "y"))

    def testTypedLineDecoderDrivesTheVisitor(self):
        struct = shape_of(SetGold)
        value = TypedLineDecoder("--gold 7").decode_struct(struct.name, struct.schema, StructVisitor(struct))
        self.assertEqual(value, SetGold(7))

    def testParseRejectsNonDataclass(self):
        with self.assertRaises(TypeError):
            parse(int, "1")


class TestArgumentMap(TestCase):
    """Behavioral tests for decode() and ArgumentMap."""

    def testKeysFollowFirstAppearance(self):
        access = decode("--arg1 x 5", ("arg0", "arg1"))
        self.assertEqual(access.keys(), ("arg1", "arg0"))
        self.assertEqual(access.next_key(), "arg1")
        self.assertEqual(access.next_value(shape_of(str)), "x")
        self.assertEqual(access.next_key(), "arg0")
        self.assertEqual(access.next_value(shape_of(int)), 5)
        self.assertIsNone(access.next_key())

    def testEmptyLine(self):
        access = decode("", ("gold",))
        self.assertEqual(len(access), 0)
        self.assertIsNone(access.next_key())

    def testNextValueWithoutKey(self):
        access = ArgumentMap({"gold": "1"})
        with self.assertRaises(UnsupportedOperationError) as context:
            access.next_value(shape_of(int))
        self.assertIsInstance(context.exception, NotImplementedError)

    def testKeyWithoutValue(self):
        self.assertEqual(parse(Maybe, "--value"), Maybe(None))
        with self.assertRaises(ArityError) as context:
            parse(Maybe, "1 --count")
        self.assertIs(context.exception.options["code"], FaultCode.MISSING_VALUE)
        self.assertEqual(context.exception.options["field"], "count")


class TestTypedFaults(TestCase):
    """Fault surface of the typed path."""

    def testMalformedLine(self):
        with self.assertRaises(GrammarError):
            parse(SetGold, '"100')

    def testTooManyPositionals(self):
        with self.assertRaises(ArityError) as context:
            parse(SetGold, "1 2")
        self.assertIs(context.exception.options["code"], FaultCode.TOO_MANY_POSITIONALS)

    def testUnknownField(self):
        with self.assertRaises(UnknownFieldError) as context:
            parse(SetGold, "--silver 1")
        self.assertEqual(context.exception.options["field"], "silver")

    def testMissingField(self):
        with self.assertRaises(ArityError) as context:
            parse(TestSimpleArgs, "100")
        self.assertIs(context.exception.options["code"], FaultCode.MISSING_FIELD)
        self.assertEqual(context.exception.options["field"], "arg1")

    def testRejectedValueChainsTheDecoderError(self):
        with self.assertRaises(ValueDecodeError) as context:
            parse(SetGold, "--gold lots")
        fault = context.exception
        self.assertIsInstance(fault.__cause__, NotationError)
        self.assertEqual(str(fault), str(fault.__cause__))
        self.assertIs(fault.options["code"], FaultCode.VALUE_REJECTED)
        self.assertEqual(fault.options["field"], "gold")
        self.assertEqual(fault.options["input"], "lots")

    def testRejectedNestedValue(self):
        with self.assertRaises(ValueDecodeError) as context:
            parse(ComplexInput, '1 --text_input x --gold (silver: 1)')
        self.assertIn("unknown field 'silver'", str(context.exception))


class TestUnsupportedOperations(TestCase):
    """Decoders reject the operations outside their single supported shape."""

    def testTypedLineDecoder(self):
        decoder = TypedLineDecoder("1")
        visitor = StructVisitor(shape_of(SetGold))
        for operation in (
            lambda: decoder.decode_map(visitor),
            lambda: decoder.decode_scalar(shape_of(int), visitor),
            lambda: decoder.decode_any(visitor),
        ):
            with self.assertRaises(UnsupportedOperationError) as context:
                operation()
            self.assertIsInstance(context.exception, NotImplementedError)
            self.assertIs(context.exception.options["code"], FaultCode.UNSUPPORTED_OPERATION)

    def testLineDecoder(self):
        decoder = LineDecoder("setgoldreflect 1", TypeRegistry([SetGoldReflect]))
        visitor = StructVisitor(shape_of(SetGoldReflect))
        for operation in (
            lambda: decoder.decode_struct("SetGoldReflect", ("gold",), visitor),
            lambda: decoder.decode_scalar(shape_of(int), visitor),
            lambda: decoder.decode_any(visitor),
        ):
            with self.assertRaises(UnsupportedOperationError):
                operation()

    def testSingleEntryMapOnlyDecodesStructs(self):
        access = decode_untyped("setgoldreflect 1", TypeRegistry([SetGoldReflect]))
        access.next_key()
        with self.assertRaises(UnsupportedOperationError):
            access.next_value(shape_of(int))

    def testDecodersRejectNonStringInput(self):
        with self.assertRaises(TypeError):
            TypedLineDecoder(None)
        with self.assertRaises(TypeError):
            LineDecoder(None, TypeRegistry())


class TestDynamicDecoding(TestCase):
    """Behavioral tests for resolve_line(), decode_untyped() and LineDecoder."""

    def setUp(self):
        self.registry = TypeRegistry([SetGoldReflect, ReflectMultiArgs])

    def testPositional(self):
        resolved = resolve_line("SetGoldReflect 100", self.registry)
        self.assertEqual(resolved.value, SetGoldReflect(100))
        self.assertIs(resolved.registration.type, SetGoldReflect)

    def testNameIsCaseInsensitive(self):
        self.assertEqual(resolve_line("setgoldreflect 100", self.registry).value, SetGoldReflect(100))
        self.assertEqual(resolve_line("SETGOLDREFLECT --gold 100", self.registry).value, SetGoldReflect(100))

    def testMultipleArguments(self):
        resolved = resolve_line('ReflectMultiArgs 100 --arg2 (gold : 200) --arg1 "Some text"', self.registry)
        self.assertEqual(resolved.value, ReflectMultiArgs(100, "Some text", SetGoldReflect(200)))

    def testRecordDefaultsFillOmittedFields(self):
        resolved = resolve_line("ReflectMultiArgs 100 --arg2 (gold : 200)", self.registry)
        self.assertEqual(resolved.value, ReflectMultiArgs(100, "", SetGoldReflect(200)))
        self.assertEqual(resolve_line("setgoldreflect", self.registry).value, SetGoldReflect(0))

    def testLeadingWhitespace(self):
        self.assertEqual(resolve_line("  \tsetgoldreflect 5", self.registry).value, SetGoldReflect(5))

    def testFirstRegistrationWinsOnNameClash(self):
        @dataclasses.dataclass
        class Other:
            gold: str

        registry = TypeRegistry([SetGoldReflect])
        registry.register(Other, name="SETGOLDREFLECT")
        self.assertIs(resolve_line("setgoldreflect 1", registry).registration.type, SetGoldReflect)

    def testSingleEntryMap(self):
        access = decode_untyped("setgoldreflect --gold 3", self.registry)
        self.assertIsInstance(access, SingleEntryMap)
        self.assertEqual(len(access), 1)
        self.assertEqual(access.next_key(), "%s.SetGoldReflect" % __name__)
        self.assertEqual(access.next_value(shape_of(SetGoldReflect)), SetGoldReflect(3))
        self.assertIsNone(access.next_key())
        with self.assertRaises(UnsupportedOperationError):
            access.next_value(shape_of(SetGoldReflect))

    def testLineDecoderDrivesTheVisitor(self):
        resolved = LineDecoder("reflectmultiargs 1 two", self.registry).decode_map(RegistryVisitor(self.registry))
        self.assertEqual(resolved.value, ReflectMultiArgs(1, "two"))

    def testPlainIterableOfRegistrations(self):
        registrations = list(self.registry)
        self.assertEqual(resolve_line("setgoldreflect 8", registrations).value, SetGoldReflect(8))

    def testMissingTypeName(self):
        for line in ("", "   "):
            with self.subTest(line=line):
                with self.assertRaises(GrammarError) as context:
                    decode_untyped(line, self.registry)
                self.assertEqual(str(context.exception), "missing type name")

    def testUnknownTypeSuggestsCloseNames(self):
        with self.assertRaises(TypeNotFoundError) as context:
            resolve_line("setgoldreflec 1", self.registry)
        fault = context.exception
        self.assertIs(fault.options["code"], FaultCode.UNKNOWN_TYPE)
        self.assertEqual(fault.options["suggestions"], ["SetGoldReflect"])
        self.assertEqual(fault.options["hint"], "did you mean 'SetGoldReflect'?")

    def testUnknownTypeListsKnownNames(self):
        with self.assertRaises(TypeNotFoundError) as context:
            resolve_line("zzz 1", self.registry)
        self.assertEqual(context.exception.options["suggestions"], [])
        self.assertEqual(context.exception.options["hint"], "known types: SetGoldReflect, ReflectMultiArgs")

    def testUnknownTypeOnEmptyRegistry(self):
        with self.assertRaises(TypeNotFoundError) as context:
            resolve_line("setgold 1", TypeRegistry())
        self.assertEqual(context.exception.options["hint"], "known types: none registered")

    def testArgumentFaultsSurfaceThroughTheDynamicPath(self):
        with self.assertRaises(UnknownFieldError):
            resolve_line("setgoldreflect --silver 1", self.registry)
        with self.assertRaises(ValueDecodeError):
            resolve_line("setgoldreflect lots", self.registry)


class TestDecoderInjection(TestCase):
    """A custom value decoder replaces the default notation."""

    def testTypedPath(self):
        decoder = UpperDecoder()
        self.assertEqual(parse(Words, "a --second b", decoder=decoder), Words("A", "B"))
        self.assertEqual([text for text, shape in decoder.calls], ["a", "b"])

    def testDynamicPath(self):
        registry = TypeRegistry([Words])
        self.assertEqual(resolve_line("words x y", registry, decoder=UpperDecoder()).value, Words("X", "Y"))

    def testRejectionIsWrapped(self):
        with self.assertRaises(ValueDecodeError) as context:
            parse(Words, "a b", decoder=RejectingDecoder())
        self.assertEqual(str(context.exception), "rejected a")
        self.assertIsInstance(context.exception.__cause__, ValueError)


if __name__ == "__main__":
    unittest.main()

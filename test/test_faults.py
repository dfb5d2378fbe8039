"""
Faults module behavioral tests (codes, rendering, trigger, warnings).

Scope
- Validate FaultCode normalization and host overrides from __main__.
- Validate the rich layout of signals in plain and fancy modes.
- Validate trigger(): option merging, raising vs. exiting, warning routing.
- Validate getdoc() lookups.

Conventions
- Test method names follow CamelCase per project convention.
- Host overrides are patched onto __main__ and removed after each test.
"""

from __future__ import annotations

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import TestCase, mock

from rich.console import Console

from quiver import (
    Command,
    Value,
    FaultCode,
    CommandSignal,
    InvalidArgumentError,
    MissingArgumentError,
    UnknownSubcommandError,
    HelpRequested,
    DuplicatedOptionWarning,
    trigger,
    getdoc,
)

main = __import__("__main__")


def render(renderable):
    output = io.StringIO()
    Console(file=output, width=100).print(renderable)
    return output.getvalue()


def tool():
    command = Command("tool")
    command.add_positional(Value("file"))
    return command


class TestFaultCode(TestCase):
    """Stable identifiers and their host-facing labels."""

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.MISSING_ARGUMENT.normalize(), "22101")

    def testNormalizeHonoursHostCodes(self):
        with mock.patch.object(main, "__codes__", {FaultCode.MISSING_ARGUMENT: "E-MISSING"}, create=True):
            self.assertEqual(FaultCode.MISSING_ARGUMENT.normalize(), "E-MISSING")
            self.assertEqual(FaultCode.INVALID_ARGUMENT.normalize(), "21101")

    def testGetdocWithoutHostDocs(self):
        self.assertIsNone(getdoc(FaultCode.INVALID_ARGUMENT))

    def testGetdocHonoursHostDocs(self):
        with mock.patch.object(main, "__docs__", {FaultCode.UNKNOWN_SUBCOMMAND: "see the manual"}, create=True):
            self.assertEqual(getdoc(FaultCode.UNKNOWN_SUBCOMMAND), "see the manual")

    def testGetdocRejectsPlainIntegers(self):
        with self.assertRaises(TypeError):
            getdoc(21101)


class TestSignals(TestCase):
    """Signal attributes and messages."""

    def testInvalidArgumentCarriesNameAndReason(self):
        fault = InvalidArgumentError("count", "expected int, got 'x'")
        self.assertEqual(fault.name, "count")
        self.assertEqual(fault.message, "invalid value for 'count': expected int, got 'x'")
        self.assertIsInstance(fault, CommandSignal)

    def testUnknownSubcommandMessage(self):
        fault = UnknownSubcommandError("nope", suggestions=[])
        self.assertEqual(fault.message, "unknown subcommand 'nope'")
        self.assertEqual(str(fault), "unknown subcommand 'nope'")

    def testMissingArgumentMessage(self):
        self.assertEqual(MissingArgumentError("--target").message, "missing required argument '--target'")

    def testHelpRequestedIsNotAnError(self):
        self.assertNotIsInstance(HelpRequested(tool()), InvalidArgumentError)
        self.assertNotIsInstance(HelpRequested(tool()), MissingArgumentError)

    def testOptionsAreReadOnly(self):
        fault = MissingArgumentError("file", hint="pass a file")
        with self.assertRaises(TypeError):
            fault.options["hint"] = "other"


class TestRendering(TestCase):
    """Rich layout of faults."""

    def testPlainLayout(self):
        text = render(MissingArgumentError("file", tool=tool(), hint="pass a file"))
        self.assertEqual(
            text,
            "[ tool - 22101 | Missing Argument ]\n"
            "missing required argument 'file'\n"
            " → pass a file\n",
        )

    def testCodeAndTitleOverrides(self):
        fault = MissingArgumentError("SUBCOMMAND", code=FaultCode.MISSING_SUBCOMMAND, title="missing subcommand")
        self.assertIn("[ quiver - 22102 | Missing Subcommand ]", render(fault))

    def testFancyLayoutUsesPanel(self):
        text = render(InvalidArgumentError("count", fancy=True))
        self.assertIn("╭", text)
        self.assertIn("invalid value for 'count'", text)


class TestTrigger(TestCase):
    """Surfacing faults in library and shell modes."""

    def testRaisesWithMergedOptions(self):
        with self.assertRaises(InvalidArgumentError) as context:
            trigger(InvalidArgumentError("count", "bad", hint="first"), hint="second", shell=False)
        self.assertEqual(context.exception.name, "count")
        self.assertEqual(context.exception.reason, "bad")
        self.assertEqual(context.exception.options["hint"], "second")

    def testShellModeExitsWithFailure(self):
        stderr = io.StringIO()
        with redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            trigger(MissingArgumentError("file"), tool=tool(), shell=True, colorful=False)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("missing required argument 'file'", stderr.getvalue())
        self.assertIn("tool FILE", stderr.getvalue())

    def testShellModeHelpExitsWithSuccess(self):
        stdout = io.StringIO()
        with redirect_stdout(stdout), self.assertRaises(SystemExit) as context:
            trigger(HelpRequested(tool()), shell=True, colorful=False)
        self.assertEqual(context.exception.code, 0)
        self.assertEqual(stdout.getvalue(), "tool FILE\n\nARGS:\n  FILE\n")

    def testWarningsGoThroughWarningsModule(self):
        with self.assertWarns(DuplicatedOptionWarning):
            trigger(DuplicatedOptionWarning("--count"), shell=False)

    def testShellModeWarningsArePrinted(self):
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            trigger(DuplicatedOptionWarning("--count"), shell=True, colorful=False)
        self.assertIn("option '--count' was already provided", stderr.getvalue())

    def testRejectsObjectsWithoutProtocol(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))


if __name__ == "__main__":
    unittest.main()

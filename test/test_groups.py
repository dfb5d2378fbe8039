"""
Subcommand behavioral tests (group resolution, delegation, nested rendering).

Scope
- Validate group resolution: selection, unknown names, missing subcommands.
- Validate that the parent resumes after the subcommand stops.
- Validate one-shot selection, reset(), and nesting.
- Validate group help and the parent usage/help asymmetry.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Command, CommandGroup, Flag, Value, faults).
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from quiver import (
    Command,
    CommandGroup,
    Flag,
    Value,
    HelpRequested,
    InvalidArgumentError,
    MissingArgumentError,
    UnknownSubcommandError,
)


def tool(*, options=False):
    root = Command("tool", "build and run things")
    if options:
        root.add_named("--level", Value("level"))
    group = root.add_group(CommandGroup())
    build = group.add_command(Command("build", "compile sources"))
    build.add_positional(Value("source"))
    build.add_named("--jobs", Value("jobs", type=int))
    group.add_command(Command("run"))
    return root


class TestResolution(TestCase):
    """Group selection and its faults."""

    def testSelectsAndDelegates(self):
        root = tool()
        self.assertEqual(root.parse(["build", "--jobs", "4", "src"], 0), 4)
        build = root.group.commands["build"]
        self.assertIs(root.group.selected, build)
        self.assertEqual(build.named["--jobs"].value, 4)
        self.assertEqual(build.positionals[0].value, "src")

    def testHelpAfterSubcommandTargetsSubcommand(self):
        root = tool()
        with self.assertRaises(HelpRequested) as context:
            root.parse(["build", "--help"], 0)
        self.assertIs(context.exception.command, root.group.commands["build"])

    def testHelpBeforeSubcommandTargetsParent(self):
        root = tool()
        with self.assertRaises(HelpRequested) as context:
            root.parse(["--help", "build"], 0)
        self.assertIs(context.exception.command, root)

    def testUnknownSubcommandIsInvalid(self):
        with self.assertRaises(InvalidArgumentError) as context:
            tool().parse(["nope"], 0)
        self.assertIsInstance(context.exception, UnknownSubcommandError)
        self.assertEqual(context.exception.name, "nope")

    def testUnknownSubcommandSuggestsCloseMatches(self):
        with self.assertRaises(UnknownSubcommandError) as context:
            tool().parse(["buld"], 0)
        self.assertEqual(context.exception.options["suggestions"], ["build"])
        self.assertIn("build", context.exception.options["hint"])

    def testMissingSubcommandNamesTheGroup(self):
        with self.assertRaises(MissingArgumentError) as context:
            tool().parse([], 0)
        self.assertEqual(context.exception.name, "SUBCOMMAND")

    def testCustomGroupLabel(self):
        root = Command("git")
        root.add_group(CommandGroup("COMMAND")).add_command(Command("status"))
        with self.assertRaises(MissingArgumentError) as context:
            root.parse(["--"], 0)
        self.assertEqual(context.exception.name, "COMMAND")

    def testGroupParsePastTheEnd(self):
        group = tool().group
        with self.assertRaises(MissingArgumentError):
            group.parse(["build"], 1)

    def testSubcommandFaultsPropagate(self):
        with self.assertRaises(MissingArgumentError) as context:
            tool().parse(["build"], 0)
        self.assertEqual(context.exception.name, "source")


class TestDelegation(TestCase):
    """Control returns to the parent once the subcommand stops."""

    def testParentResumesAfterSeparator(self):
        root = tool(options=True)
        self.assertEqual(root.parse(["run", "--", "--level", "3"], 0), 4)
        self.assertEqual(root.named["--level"].value, "3")

    def testParentResumesAfterUnclaimedToken(self):
        root = tool(options=True)
        self.assertEqual(root.parse(["run", "--level", "3"], 0), 3)
        self.assertEqual(root.named["--level"].value, "3")

    def testHelpAfterReturnedTokensTargetsParent(self):
        root = tool(options=True)
        with self.assertRaises(HelpRequested) as context:
            root.parse(["run", "--level", "3", "--help"], 0)
        self.assertIs(context.exception.command, root)
        self.assertEqual(root.named["--level"].value, "3")

    def testParentOptionsBeforeSubcommandAreSubcommandNames(self):
        with self.assertRaises(UnknownSubcommandError):
            tool(options=True).parse(["--level", "3", "run"], 0)

    def testNestedGroups(self):
        root = Command("cloud")
        compute = root.add_group(CommandGroup()).add_command(Command("compute"))
        instances = compute.add_group(CommandGroup("RESOURCE"))
        create = instances.add_command(Command("create"))
        name = create.add_positional(Value("name"))
        force = create.add_named("--force", Flag("force"))
        self.assertEqual(root.parse(["compute", "create", "--force", "vm-1"], 0), 4)
        self.assertEqual(name.value, "vm-1")
        self.assertTrue(force.value)
        self.assertIs(instances.selected, create)

    def testSelectionIsOneShot(self):
        root = tool()
        root.parse(["run"], 0)
        with self.assertRaises(RuntimeError):
            root.group.parse(["run"], 0)

    def testResetClearsSelection(self):
        root = tool()
        root.parse(["build", "src"], 0)
        root.reset()
        self.assertIsNone(root.group.selected)
        self.assertFalse(root.group.commands["build"].positionals[0].is_set)
        self.assertEqual(root.parse(["run"], 0), 1)

    def testSecondGroupRejected(self):
        with self.assertRaises(RuntimeError):
            tool().add_group(CommandGroup())

    def testDuplicateSubcommandRejected(self):
        with self.assertRaises(ValueError):
            tool().group.add_command(Command("run"))


class TestRendering(TestCase):
    """Group usage/help and the parent asymmetry."""

    def testUsageWithoutOwnOptions(self):
        self.assertEqual(tool().format_usage().plain, "tool {build|run}")

    def testUsageWithOwnOptionsShowsSeparator(self):
        self.assertEqual(tool(options=True).format_usage().plain, "tool {build|run} -- [OPTIONS]")

    def testHelpListsSubcommands(self):
        self.assertEqual(
            tool().format_help().plain,
            "SUBCOMMANDS:\n"
            "  build SOURCE [OPTIONS]\n"
            "    compile sources\n"
            "\n"
            "  run",
        )

    def testHelpOmitsParentOptions(self):
        root = tool(options=True)
        self.assertNotIn("--level", root.format_help().plain)
        self.assertNotIn("OPTIONS:", root.format_help().plain)
        self.assertIn("[OPTIONS]", root.format_usage().plain)

    def testGroupDescriptionLeadsHelp(self):
        root = Command("git")
        group = root.add_group(CommandGroup(descr="version control"))
        group.add_command(Command("status", "show the working tree"))
        self.assertEqual(
            root.format_help().plain,
            "version control\n\nSUBCOMMANDS:\n  status\n    show the working tree",
        )


if __name__ == "__main__":
    unittest.main()

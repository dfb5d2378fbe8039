"""
Quiver faults (signals and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues.
  Codes are grouped by domain to keep copy consistent and make logs/searches
  predictable.
- CommandSignal: base type for everything that aborts a parse run. Carries a
  message plus rendering options and knows how to render itself with rich.
- The three parse outcomes that are not a plain return:
  • InvalidArgumentError: a token reached a slot but could not be converted,
    or a subcommand name could not be resolved.
  • MissingArgumentError: validation found an unfulfilled requirement.
  • HelpRequested: the help marker was seen; not an error.
- CommandWarning: non-fatal notices (e.g., an option given twice).
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

Integration
- Command.parse raises signals; it never prints or logs.
- invoke() catches them once at the top level and calls trigger(fault, **ctx).
- In non-shell mode, signals are raised; in shell mode, they are rendered via
  rich and the process exits (0 for help, 1 for faults).
"""
import copy
import sys
import warnings
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce, palette

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the library (stable identifiers).

    ranges
    - invalid input (211xx)
      • INVALID_ARGUMENT, UNKNOWN_SUBCOMMAND, UNPARSED_TOKENS
    - missing input (221xx)
      • MISSING_ARGUMENT, MISSING_SUBCOMMAND
    - control signals (231xx)
      • HELP_REQUESTED
    - warnings (311xx)
      • DUPLICATED_OPTION
    """
    # --- invalid input ---
    INVALID_ARGUMENT   = 21101
    UNKNOWN_SUBCOMMAND = 21102
    UNPARSED_TOKENS    = 21103

    # --- missing input ---
    MISSING_ARGUMENT   = 22101
    MISSING_SUBCOMMAND = 22102

    # --- control signals ---
    HELP_REQUESTED     = 23101

    # --- warnings ---
    DUPLICATED_OPTION  = 31101

    def normalize(self):
        """
        label shown in fault headers.

        a __codes__ mapping defined in __main__ (FaultCode -> label) wins over
        the numeric id, which is used as a string otherwise.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, defaults, /):
    """
    shared rich layout for signals and warnings: header, message, hint.
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", False)
    styler = palette(defaults, colorful)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    tool = options.get("tool")
    prog = text(getattr(main, "__prog__", getattr(tool, "name", "quiver")), styler("prog-name"))

    header = Text.assemble(
        "[ ",
        prog,
        " - ",
        text(options.get("code", type(fault).__code__).normalize(), styler("code")),
        " | ",
        text(options.get("title", type(fault).__title__).title(), styler("title")),
        " ]"
    )
    message = text(fault.message, styler("message"))
    renders = [message]
    if hint := options.get("hint"):
        renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

    if options.get("fancy", False):
        return Panel(Group(*renders), title=header, title_align="left")

    return Group(header, *renders)


class CommandSignal(Exception):
    """
    base type of everything that aborts a parse run.

    attributes
    - message: human-readable, lowercased one-liner.
    - options: read-only mapping of rendering context (code, title, hint, tool,
      shell, colorful, fancy, docs, ...).

    subclasses declare their default code and title through __code__/__title__
    and rebuild themselves through __replace__ so trigger() can merge options
    with copy.replace().
    """
    __code__ = FaultCode.INVALID_ARGUMENT
    __title__ = "fault"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #F2F2F7",  # program label
            "code": "bold #36C5F0",  # sky-blue code
            "title": "bold #FF4DA6",  # friendly pinky title
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#7FD88F dim",
            "hint": "italic #7FD88F",
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if (tool := self.options.get("tool")) is not None:
            tool.print_usage(console, colorful=self.options.get("colorful", False))
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class CommandException(CommandSignal):
    """
    base type of the user-error signals (invalid or missing input).
    """


class InvalidArgumentError(CommandException):
    """
    a token was matched to a slot but its value could not be accepted.

    attributes
    - name: the option key, positional name, or offending token.
    - reason: short explanation (Unset when the converter gave none).
    """
    __code__ = FaultCode.INVALID_ARGUMENT
    __title__ = "invalid argument"

    def __init__(self, name, reason=Unset, /, **options):
        self.name = name
        self.reason = reason
        if reason is Unset:
            message = "invalid value for %r" % name
        else:
            message = "invalid value for %r: %s" % (name, reason)
        super().__init__(message, **options)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.name, self.reason, **{**self.options, **overrides})


class UnknownSubcommandError(InvalidArgumentError):
    """
    the token at a subcommand position matched none of the group's commands.

    the 'suggestions' option (possibly empty) carries close matches.
    """
    __code__ = FaultCode.UNKNOWN_SUBCOMMAND
    __title__ = "unknown subcommand"

    def __init__(self, name, reason=Unset, /, **options):
        super().__init__(name, reason, **options)
        self.message = "unknown subcommand %r" % name
        self.args = (self.message,)


class UnparsedTokensError(InvalidArgumentError):
    """
    tokens remained after the root command stopped consuming input.
    """
    __code__ = FaultCode.UNPARSED_TOKENS
    __title__ = "unparsed input"

    def __init__(self, name, reason=Unset, /, **options):
        super().__init__(name, reason, **options)
        self.message = "unrecognized argument %r" % name
        self.args = (self.message,)


class MissingArgumentError(CommandException):
    """
    a required option, positional slot, or subcommand was never provided.

    attributes
    - name: the option key, positional name, or subcommand label.
    """
    __code__ = FaultCode.MISSING_ARGUMENT
    __title__ = "missing argument"

    def __init__(self, name, /, **options):
        self.name = name
        super().__init__("missing required argument %r" % name, **options)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.name, **{**self.options, **overrides})


class HelpRequested(CommandSignal):
    """
    the help marker was seen while parsing 'command'.

    not an error: in shell mode its trigger prints the command's usage and help
    to stdout and exits with status 0.
    """
    __code__ = FaultCode.HELP_REQUESTED
    __title__ = "help requested"

    def __init__(self, command, /, **options):
        self.command = command
        super().__init__("help requested for %r" % command.name, **options)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        output = Console()
        colorful = self.options.get("colorful", False)
        self.command.print_usage(output, colorful=colorful)
        output.print()
        self.command.print_help(output, colorful=colorful)
        sys.exit(0)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.command, **{**self.options, **overrides})


class CommandWarning(Warning):
    """
    base type for non-fatal notices raised while parsing.
    """
    __code__ = FaultCode.DUPLICATED_OPTION
    __title__ = "warning"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #F2F2F7",  # program label
            "code": "bold #FFB400",  # amber for warnings
            "title": "bold #FFC2E0",  # softer pinky title for warnings
            "message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#A8E6A1 dim",
            "hint": "italic #A8E6A1",
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=3)
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DuplicatedOptionWarning(CommandWarning):
    """
    a named option was given more than once; the last occurrence wins.
    """
    __code__ = FaultCode.DUPLICATED_OPTION
    __title__ = "duplicated option"

    def __init__(self, name, /, **options):
        self.name = name
        super().__init__("option %r was already provided" % name, **options)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.name, **{**self.options, **overrides})


def trigger(fault, /, **options):
    """
    surface a signal or warning under the given run options.

    contract
    - fault must implement __trigger__ and __replace__ (CommandSignal and
      CommandWarning do).
    - options are merged into the fault via copy.replace() before triggering.
    - in shell mode, rendering happens via rich console; otherwise, signals are
      raised and warnings go through warnings.warn.

    typical options
    - tool, shell, fancy, colorful, title, code, hint, docs.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    look up host-provided documentation for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings. when
    not found, returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "CommandSignal",
    "CommandException",
    "InvalidArgumentError",
    "UnknownSubcommandError",
    "UnparsedTokensError",
    "MissingArgumentError",
    "HelpRequested",
    "CommandWarning",
    "DuplicatedOptionWarning",
    "trigger",
    "getdoc",
)

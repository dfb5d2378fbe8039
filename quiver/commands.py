"""
Quiver command layer: declare, parse, validate, and describe CLI commands.

What this module provides
- Command: a named unit of argument acceptance. Owns ordered positional
  slots, a key-indexed mapping of named slots, and at most one CommandGroup.
  • parse(tokens, position) drives a small recursive-descent parser over the
    token stream, then validates required arguments.
  • format_usage()/format_help() render a one-line synopsis and a sectioned
    help listing as rich Text (print_usage()/print_help() write them out).

- CommandGroup: a set of mutually exclusive subcommands. Resolves which one is
  active (one-shot) and hands the rest of the stream to it.

- invoke(command, prompt): host runner. Tokenizes a prompt, parses, and turns
  the three signals into rendered output and exit statuses.

Reserved tokens
- SEPARATOR ("--") ends parsing at the current command level.
- HELP ("--help") raises HelpRequested before any other interpretation.
- EQUAL_SIGN ("=") binds a named option to its value inside one token.

Quick start
    from quiver import Command, CommandGroup, Flag, Value, invoke

    tool = Command("tool", "process files")
    file = tool.add_positional(Value("file", descr="input file"))
    verbose = tool.add_named("--verbose", Flag("verbose", "print more"))

    if __name__ == "__main__":
        invoke(tool)            # parses sys.argv[1:]
        print(file.value, verbose.value)

Design notes
- Parsing never prints or logs; it raises signals that carry a name or a
  command reference. Rendering is the caller's job (see invoke()).
- A command with a subcommand group prints only the group's help, never its
  own positional/named sections, even though its usage line shows them.
"""
import difflib
import functools
import itertools
import operator
import re
import shlex
import sys
import warnings
from collections.abc import Iterable
from warnings import catch_warnings

from rich.console import Console
from rich.text import Text

from .faults import *
from .utils import *
from .values import OptionValue

class CommandType(type):
    """
    Metaclass giving commands and groups read-only introspection and stable reprs.

    - Every name in __introspectable__ becomes a mirror() property over "_{name}".
    - __typename__ is derived from the class name (e.g. "command-group").
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_label(cls, field, object, /):
    """
    Internal: validate a required, non-empty string (name/label) after trimming.
    """
    if not isinstance(object, str):
        raise TypeError(f"{cls.__typename__} '{field}' must be a string")
    elif not (object := object.strip()):
        raise ValueError(f"{cls.__typename__} '{field}' cannot be empty")
    return object


def _sanitize_descr(cls, descr, /):
    """
    Internal: Unset | str | Text; non-empty when a string, None when Unset.
    """
    if not isinstance(descr, str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    return coalesce(descr)


def _text(fragment, style, colorful, /):
    # Normalize to Rich Text. In non-colorful mode, strip styles.
    if not colorful:
        return Text(str(fragment))
    if isinstance(fragment, Text):
        return fragment
    return Text(str(fragment), style)


_STYLES = {
    "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
    "subcommands": "bold #36C5F0",  # SKY-BLUE subcommand alternation
    "separator": "#737373",  # Dim separator
    "metavar": "bold #FFD600",  # AMBER for positional usage
    "options-marker": "bold #00E6FF",  # CYAN [OPTIONS]
    "section-label": "bold #FFFFFF",  # Pure white headers
    "option-name": "bold #00E6FF",  # CYAN for option keys
    "argument-description": "#9CA3AF",  # Muted gray
}

# Indentation of help items: "  USAGE\n    description"
_INDENT = "  "


def _help_item(head, descr, styler, colorful, /):
    """
    Internal: one help entry, the head line plus an indented description line.
    """
    item = Text(_INDENT).append(head)
    if descr:
        item.append("\n").append(_INDENT * 2).append(_text(descr, styler("argument-description"), colorful))
    return item


def _requests_help(tokens, position, /):
    """
    Internal: True when HELP occurs at or after 'position' before the next SEPARATOR.
    """
    for token in itertools.islice(tokens, position, None):
        if token == SEPARATOR:
            return False
        if token == HELP:
            return True
    return False


class Command(metaclass=CommandType):
    """
    A named, described unit of argument acceptance.

    Shape (fixed once the program is set up)
    - positionals: ordered slots; order of addition is order of consumption.
    - named: key → slot, keys matched verbatim (e.g. "--output"). Insertion
      order only matters for help and for which missing option is reported first.
    - group: at most one CommandGroup.

    State (mutated by one parse run)
    - the slots' values and the group's selection. reset() clears both.
    """

    __introspectable__ = (
        "name",
        "descr",
        "positionals",
        "named",
        "group",
    )

    def __init__(self, name, /, descr=Unset):
        self._name = _sanitize_label(type(self), "name", name)
        self._descr = _sanitize_descr(type(self), descr)
        self._positionals = []
        self._named = {}
        self._group = None

    def _check_unregistered(self, option):
        if not isinstance(option, OptionValue):
            raise TypeError(f"{type(self).__typename__} options must be option values")
        if any(option is other for other in (*self._positionals, *self._named.values())):
            raise ValueError(f"option {option.name!r} is already registered in {type(self).__typename__} {self.name!r}")

    def add_positional(self, option, /):
        """
        Append a slot to the positional sequence and return it.
        """
        self._check_unregistered(option)
        self._positionals.append(option)
        return option

    def add_named(self, key, option, /):
        """
        Register a slot under 'key' (matched verbatim on the command line) and return it.

        Raises
        - ValueError when the key is empty, reserved ("--", "--help"),
          contains "=", or is already taken.
        """
        key = _sanitize_label(type(self), "key", key)
        if key in (SEPARATOR, HELP):
            raise ValueError(f"{type(self).__typename__} key {key!r} is reserved")
        if EQUAL_SIGN in key:
            raise ValueError(f"{type(self).__typename__} key {key!r} cannot contain {EQUAL_SIGN!r}")
        if key in self._named:
            raise ValueError(f"{type(self).__typename__} key {key!r} is already in use")
        self._check_unregistered(option)
        self._named[key] = option
        return option

    def add_group(self, group, /):
        """
        Attach the subcommand group and return it.

        Raises
        - RuntimeError when a group is already attached (a programming error,
          not a parse-time error).
        """
        if not isinstance(group, CommandGroup):
            raise TypeError(f"{type(self).__typename__} group must be a command group")
        if self._group is not None:
            raise RuntimeError("only one subcommand group per command is supported")
        self._group = group
        return group

    def _parse_inline(self, token, /):
        """
        Parse a "--key=value" token; True when the token was consumed.

        An unknown key is not an error here: the caller falls through to the
        verbatim lookup and the positional slots.
        """
        key, _, value = token.partition(EQUAL_SIGN)
        try:
            option = self._named[key]
        except KeyError:
            return False
        if option.is_set:
            trigger(DuplicatedOptionWarning(key, tool=self))
        return option.parse([value], 0) > 0

    def parse(self, tokens, position=0, /):
        """
        Parse this command (subcommands, named and positional slots) from tokens.

        Parameters
        - tokens: Sequence[str], the full argument list.
        - position: int, index of the first token this command may consume.

        Returns
        - int: index of the first token not consumed by this command.

        Priority per token
        1. SEPARATOR: skip it and stop.
        2. HELP: raise HelpRequested(self).
        3. Unresolved group: delegate to the group and continue from its result.
        4. "--key=value" with a known key: parse value, consume the token.
        5. Known key: the slot consumes from here. Otherwise the next positional
           slot does. Otherwise stop.

        Validation (after the loop, in order)
        - unresolved group, unset required named slots (registration order),
          unconsumed positional slots.

        Raises
        - InvalidArgumentError, MissingArgumentError, HelpRequested.
        """
        cursor = 0
        index = position
        try:
            while index < len(tokens):
                token = tokens[index]
                if token == SEPARATOR:
                    index += 1
                    break
                if token == HELP:
                    raise HelpRequested(self)
                if self._group is not None and self._group.selected is None:
                    index = self._group.parse(tokens, index)
                    continue
                if EQUAL_SIGN in token and self._parse_inline(token):
                    index += 1
                    continue
                if (option := self._named.get(token)) is not None:
                    if option.is_set:
                        trigger(DuplicatedOptionWarning(token, tool=self))
                    index = option.parse(tokens, index, named=True)
                    continue
                if cursor >= len(self._positionals):
                    # unclaimed input is left to the caller
                    break
                index = self._positionals[cursor].parse(tokens, index)
                cursor += 1
        except InvalidArgumentError:
            if _requests_help(tokens, index):
                raise HelpRequested(self) from None
            raise

        if self._group is not None and self._group.selected is None:
            raise MissingArgumentError(
                self._group.name,
                code=FaultCode.MISSING_SUBCOMMAND,
                title="missing subcommand",
                hint="choose one of: %s" % ", ".join(self._group.commands),
                docs=getdoc(FaultCode.MISSING_SUBCOMMAND),
            )
        for key, option in self._named.items():
            if option.required and not option.is_set:
                raise MissingArgumentError(key)
        if cursor < len(self._positionals):
            raise MissingArgumentError(self._positionals[cursor].name)
        return index

    def reset(self):
        """
        Clear every slot and the group selection, recursively.
        """
        for option in (*self._positionals, *self._named.values()):
            option.reset()
        if self._group is not None:
            self._group.reset()

    def format_usage(self, *, colorful=False):
        """
        One-line synopsis, e.g. "tool {build|run} -- FILE [OPTIONS]".

        - the separator appears only when this command has a group and its
          own positional or named slots.
        - named slots are summarized as "[OPTIONS]"; format_help() expands them.
        """
        styler = palette(_STYLES, colorful)
        usage = _text(self.name, styler("program-name"), colorful)
        if self._group is not None:
            usage.append(" ").append(self._group.format_usage(colorful=colorful))
            if self._named or self._positionals:
                usage.append(" ").append(_text(SEPARATOR, styler("separator"), colorful))
        for option in self._positionals:
            if option.usage:
                usage.append(" ").append(_text(option.usage, styler("metavar"), colorful))
        if self._named:
            usage.append(" ").append(_text("[OPTIONS]", styler("options-marker"), colorful))
        return usage

    def format_help(self, *, colorful=False):
        """
        Sectioned help listing ("ARGS:" then "OPTIONS:").

        With a subcommand group attached the group's help is returned instead,
        and this command's own slots are not listed.
        """
        if self._group is not None:
            return self._group.format_help(colorful=colorful)

        styler = palette(_STYLES, colorful)
        sections = []
        if self._positionals:
            items = [
                _help_item(_text(option.usage, styler("metavar"), colorful), option.descr, styler, colorful)
                for option in self._positionals
            ]
            sections.append(Text("\n").join((
                _text("ARGS:", styler("section-label"), colorful),
                Text("\n\n").join(items),
            )))
        if self._named:
            items = []
            for key, option in self._named.items():
                head = _text(key, styler("option-name"), colorful)
                if option.usage:
                    head.append(" ").append(_text(option.usage, styler("metavar"), colorful))
                items.append(_help_item(head, option.descr, styler, colorful))
            sections.append(Text("\n").join((
                _text("OPTIONS:", styler("section-label"), colorful),
                Text("\n\n").join(items),
            )))
        return Text("\n\n").join(sections)

    def print_usage(self, console=None, /, *, colorful=False):
        (console or Console()).print(self.format_usage(colorful=colorful), highlight=False)

    def print_help(self, console=None, /, *, colorful=False):
        (console or Console()).print(self.format_help(colorful=colorful), highlight=False)

    def __invoke__(self, prompt=Unset, /, **options):
        """
        Parse a prompt with this command as the root and surface the outcome.

        Parameters
        - prompt:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; split via shlex.split.
          • Iterable[str]: pre-tokenized sequence.
        - options (keyword-only):
          • shell (default True): render faults and exit instead of raising.
          • colorful (default True), fancy (default False): rendering chrome.
          • strict (default True): leftover tokens raise UnparsedTokensError.

        Returns
        - int: index of the first unconsumed token.

        Exit statuses in shell mode
        - 0 after help was printed, 1 after a fault was printed.
        """
        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            tokens = shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            tokens = list(prompt)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("__invoke__() argument must be a string or an iterable of strings")
        else:
            raise TypeError("__invoke__() argument must be a string or an iterable of strings")

        strict = options.pop("strict", True)
        context = {
            "tool": self,
            "shell": options.pop("shell", True),
            "colorful": options.pop("colorful", True),
            "fancy": options.pop("fancy", False),
        }
        if options:
            raise TypeError("__invoke__() got unexpected options: %s" % ", ".join(map(repr, options)))

        fault = None
        with catch_warnings(record=True) as records:
            warnings.simplefilter("always", CommandWarning)
            try:
                index = self.parse(tokens, 0)
                # help after input the root left unclaimed still wins, unless a
                # separator ended the run
                separated = index > 0 and tokens[index - 1] == SEPARATOR
                if not separated and _requests_help(tokens, index):
                    raise HelpRequested(self)
                if strict and index < len(tokens):
                    raise UnparsedTokensError(
                        tokens[index],
                        leftover=tokens[index:],
                        docs=getdoc(FaultCode.UNPARSED_TOKENS),
                    )
            except CommandSignal as signal:
                fault = signal

        # replay captured warnings now that the run is over
        for record in records:
            if isinstance(record.message, CommandWarning):
                trigger(record.message, **context)
            else:
                warnings.warn_explicit(record.message, record.category, record.filename, record.lineno)

        if fault is not None:
            if not isinstance(fault, HelpRequested) and "hint" not in fault.options:
                context["hint"] = "run '%s --help' to see the expected usage" % self.name
            trigger(fault, **context)
        return index


class CommandGroup(metaclass=CommandType):
    """
    A named set of mutually exclusive subcommands.

    - name: label used in missing-subcommand faults (default "SUBCOMMAND").
    - commands: subcommand name → Command, in registration order.
    - selected: the resolved Command, None until parse() picks one. Selection
      is one-shot per run; reset() clears it.
    """

    __introspectable__ = (
        "name",
        "descr",
        "commands",
    )

    def __init__(self, name="SUBCOMMAND", /, descr=Unset):
        self._name = _sanitize_label(type(self), "name", name)
        self._descr = _sanitize_descr(type(self), descr)
        self._commands = {}
        self._selected = None

    @property
    def selected(self):
        return self._selected

    def add_command(self, command, /):
        """
        Register a subcommand under its own name and return it.
        """
        if not isinstance(command, Command):
            raise TypeError(f"{type(self).__typename__} members must be commands")
        if self._commands.setdefault(command.name, command) is not command:
            raise ValueError(f"{type(self).__typename__} subcommand name {command.name!r} is already in use")
        return command

    def _select(self, command, /):
        if self._selected is not None:
            raise RuntimeError("a subcommand is already selected for this run")
        self._selected = command

    def parse(self, tokens, position=0, /):
        """
        Resolve tokens[position] to a subcommand and let it parse the rest.

        Returns
        - int: whatever the selected command's parse() returns.

        Raises
        - MissingArgumentError when no token is left at 'position'.
        - UnknownSubcommandError (an InvalidArgumentError) when the token names
          no registered subcommand; close matches are offered as suggestions.
        """
        try:
            token = tokens[position]
        except IndexError:
            raise MissingArgumentError(
                self.name,
                code=FaultCode.MISSING_SUBCOMMAND,
                title="missing subcommand",
                docs=getdoc(FaultCode.MISSING_SUBCOMMAND),
            ) from None
        try:
            command = self._commands[token]
        except KeyError:
            suggestions = difflib.get_close_matches(token, self._commands.keys(), 5)
            try:
                hint = "did you mean %r?" % suggestions[0]
            except IndexError:
                hint = "choose one of: %s" % ", ".join(self._commands)
            raise UnknownSubcommandError(
                token,
                suggestions=suggestions,
                hint=hint,
                docs=getdoc(FaultCode.UNKNOWN_SUBCOMMAND),
            ) from None
        self._select(command)
        return command.parse(tokens, position + 1)

    def reset(self):
        self._selected = None
        for command in self._commands.values():
            command.reset()

    def format_usage(self, *, colorful=False):
        # "{build|run}"
        styler = palette(_STYLES, colorful)
        return Text.assemble(
            "{",
            Text("|").join(_text(name, styler("subcommands"), colorful) for name in self._commands),
            "}",
        )

    def format_help(self, *, colorful=False):
        styler = palette(_STYLES, colorful)
        items = [
            _help_item(command.format_usage(colorful=colorful), command.descr, styler, colorful)
            for command in self._commands.values()
        ]
        listing = Text("\n").join((
            _text("SUBCOMMANDS:", styler("section-label"), colorful),
            Text("\n\n").join(items),
        ))
        if self.descr:
            return Text("\n\n").join((_text(self.descr, styler("argument-description"), colorful), listing))
        return listing


def invoke(object, prompt=Unset, /, **options):
    """
    Convenience runner for commands.

    Parameters
    - object: an instance providing __invoke__(prompt, **options), i.e. a Command.
    - prompt: Unset (sys.argv[1:]), a shell-like string, or an iterable of strings.
    - options: forwarded to __invoke__ (shell, colorful, fancy, strict).

    Returns
    - int: index of the first unconsumed token.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt, **options)

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method") from None


__all__ = (
    # Reserved tokens
    "SEPARATOR",
    "EQUAL_SIGN",
    "HELP",

    # Classes
    "Command",
    "CommandGroup",

    # Runner
    "invoke",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del CommandType

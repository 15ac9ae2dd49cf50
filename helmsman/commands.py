"""
Helmsman command layer: declare switches, parse argv, dispatch callbacks.

What this module provides
- Command: the facade. Owns the option registry, the positional arguments and
  the parse state machine (constructed → parsing → completed | aborted).
- ParseContext: the handle every callback receives (value, cursor, option and a
  back reference to the command).
- State: the parse state machine's states.

Parsing rules
- tokens are scanned left to right; an exact registry match is an option.
- required value: the next token is always consumed; none left → MissingArgumentError.
- optional value: the next token is consumed unless it is a registered flag or '--'.
- '--' ends option processing; everything after it is positional.
- a flag-looking token that is not registered → UnrecognizedOptionError.
- anything else is collected, in order, as a positional argument.

Quick start
    from helmsman import Command

    class Tool(Command):
        def __init__(self):
            super().__init__("tool", "1.2.0")
            self.verbose = False
            self.option("-v", "--verbose", "enable verbose output", self.on_verbose)

        def on_verbose(self, context):
            self.verbose = True

    tool = Tool()
    tool.parse(["-v", "input.txt"])
    tool.verbose, tool.additional_args()   # (True, ('input.txt',))

Faults and interrupts
- errors (missing value, unrecognized flag) print the help text on stderr, move
  the command to ABORTED and are raised (or, with shell=True, rendered and exited).
- --help / --version print their text and raise HelpRequested / VersionRequested
  (shell=True exits with status 0 instead).
"""
import copy
import difflib
import functools
import logging
import os.path
import shlex
import sys
from collections import deque
from collections.abc import Iterable
from enum import StrEnum

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .faults import *
from .options import SWITCH, Arity, Registry
from .rendering import render_help, render_version
from .utils import *

logger = logging.getLogger(__name__)

# Ends option processing: every later token is positional.
TERMINATOR = "--"


@functools.cache
def _ordinal(number):
    """
    Human-friendly ordinal for a 1-based position.

    - 1..5 are words ("first"…"fifth").
    - other numbers get numeric suffixes (6th, 11th, 21st, ...).
    """
    try:
        return {1: "first", 2: "second", 3: "third", 4: "fourth", 5: "fifth"}[number]
    except KeyError:
        pass

    if 10 < number % 100 < 20:
        return f"{number}th"
    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


class State(StrEnum):
    """
    Parse state machine of a Command.
    """
    CONSTRUCTED = "constructed"
    PARSING = "parsing"
    COMPLETED = "completed"
    ABORTED = "aborted"


class ParseContext:
    """
    Handle passed to every option callback.

    Attributes (read-only)
    - arg: extracted value of the matched option, or None.
    - index: 0-based position of the matched flag in the argument vector.
    - option: the matched Option.
    - command: the owning Command (the outermost, possibly subclassed, object).

    A context lives for exactly one parse() call; reading it afterwards
    raises RuntimeError.
    """

    __slots__ = ("_command", "_arg", "_index", "_option", "_closed")

    def __init__(self, command, /):
        self._command = command
        self._arg = None
        self._index = None
        self._option = None
        self._closed = False

    def _guard(self):
        if self._closed:
            raise RuntimeError("parse context cannot be used after its parse() returned")

    @property
    def command(self):
        self._guard()
        return self._command

    @property
    def arg(self):
        self._guard()
        return self._arg

    @property
    def index(self):
        self._guard()
        return self._index

    @property
    def option(self):
        self._guard()
        return self._option

    def _update(self, option, arg, index):
        self._option = option
        self._arg = arg
        self._index = index

    def _close(self):
        self._closed = True

    def __repr__(self):
        if self._closed:
            return "context(closed)"
        return "context(option=%r, arg=%r, index=%r)" % (
            getattr(self._option, "long", None) or getattr(self._option, "short", None),
            self._arg,
            self._index,
        )


class Command:
    """
    Command-line facade: registration, parsing and result accessors.

    Lifecycle
    - constructed with a program name and version; built-in -V/--version and
      -h/--help options are registered first.
    - options are added with option(); usage text can be overridden with set_usage().
    - parse() runs the matcher/dispatcher/collector pipeline and ends COMPLETED,
      or ABORTED when help/version fire or a fault is triggered.
    - additional_args() returns the positional arguments in encounter order.

    Subclassing
    - callbacks are plain callables receiving a ParseContext. Bound methods of a
      subclass mutate the subclass directly; context.command is that same
      object, so no cast is involved.

    Runtime flags
    - shell: render faults with rich and exit instead of raising.
    - colorful: style help/version/fault output with the palette.
    - fancy: wrap rendered output in a rich Panel.
    - console: rich Console used for every output (defaults to stdout/stderr consoles).
    """

    __introspectable__ = (
        "name",
        "version",
        "usage",
        "state",
        "shell",
        "colorful",
        "fancy",
    )

    name = mirror("name")
    version = mirror("version")
    usage = mirror("usage")
    state = mirror("state")
    interrupt = mirror("interrupt")
    shell = mirror("shell")
    colorful = mirror("colorful")
    fancy = mirror("fancy")

    def __init__(
            self,
            name=Unset,
            version=Unset,
            /,
            *,
            usage=Unset,
            shell=False,
            colorful=False,
            fancy=False,
            console=Unset
    ):
        """
        Construct a command in the CONSTRUCTED state.

        Parameters
        - name: str | Unset
          Program name shown in help. Defaults to basename(sys.argv[0]).
        - version: str | Unset
          Version string printed by --version. Defaults to "0.0.0".
        - usage: str | Unset (keyword-only)
          Usage line after the program name. Defaults to "[options]".
        - shell, colorful, fancy: bool (keyword-only)
          Runtime flags (see class docstring).
        - console: rich.console.Console | Unset (keyword-only)
          Destination of every rendered output.

        Raises
        - TypeError/ValueError on invalid metadata.
        """
        name = coalesce(name, os.path.basename(sys.argv[0]) or "program")
        if not isinstance(name, str):
            raise TypeError("command 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError("command 'name' cannot be empty")

        version = coalesce(version, "0.0.0")
        if not isinstance(version, str):
            raise TypeError("command 'version' must be a string")

        if not isinstance(console, Console | Unset):
            raise TypeError("command 'console' must be a rich console")

        self._name = name
        self._version = version.strip()
        self._usage = "[options]"
        self._shell = bool(shell)
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)
        self._console = console
        self._registry = Registry()
        self._arguments = []
        self._state = State.CONSTRUCTED
        self._interrupt = None

        if usage is not Unset:
            self.set_usage(usage)

        # Built-ins go first so user options cannot shadow them (first-registered wins).
        self.option("-V", "--version", "output program version", self._versioner)
        self.option("-h", "--help", "output usage information", self._helper)

    @property
    def options(self):
        """
        Registered options in registration order (built-ins first).
        """
        return tuple(self._registry)

    def lookup(self, token, /):
        """
        Return the first-registered Option whose short or long flag is token, or None.
        """
        return self._registry.lookup(token)

    def set_usage(self, usage, /):
        """
        Override the usage line shown after the program name.
        """
        if not isinstance(usage, str):
            raise TypeError("command 'usage' must be a string")
        elif not (usage := usage.strip()):
            raise ValueError("command 'usage' cannot be empty")
        self._usage = usage

    def option(self, short, long, descr="", callback=Unset, /):
        """
        Register one option.

        Forms
        - command.option("-r", "--required <arg>", "required arg", callback) -> Option
        - @command.option("-r", "--required <arg>", "required arg")
          def callback(context): ...

        Parameters
        - short: str | None   e.g. "-v"
        - long: str | None    e.g. "--verbose", "--required <arg>", "--optional [arg]"
        - descr: str          description shown in help
        - callback: Callable[[ParseContext], Any] | Handler

        Raises
        - ConfigurationError: no flag given, malformed flag or value marker, or the
          command is currently parsing.
        - TypeError: callback is neither callable nor a Handler.
        """
        if self._state is State.PARSING:
            raise ConfigurationError(
                "options cannot be registered while %r is parsing" % self.name,
                title="bad option declaration",
                code=FaultCode.CONFIGURATION,
                hint="register every option before calling parse()",
            )

        if callback is Unset:
            @rename("option")
            def wrapper(callback, /):
                self.option(short, long, descr, callback)
                return callback
            return wrapper

        option = self._registry.register(short, long, descr, callback)
        logger.debug("%s: registered %r", self.name, option)
        return option

    def additional_args(self):
        """
        Positional arguments collected by the last parse, in encounter order.

        Valid after COMPLETED; after ABORTED it holds what was collected before
        the abort.
        """
        return tuple(self._arguments)

    def format_help(self):
        """
        Return the plain help text (no styling, nothing printed).
        """
        return render_help(self).plain

    def help(self):
        """
        Print the help text and take the abort path (HelpRequested).

        Meant for caller-level policies such as "too many arguments".
        """
        self._print(render_help(self, colorful=self.colorful), title="help")
        self.trigger(HelpRequested(
            "help requested",
            title="help",
            code=FaultCode.HELP_REQUESTED,
        ))

    def _helper(self, context):
        """
        Built-in --help callback.
        """
        self._print(render_help(self, colorful=self.colorful), title="help")
        self.trigger(HelpRequested(
            "help requested",
            title="help",
            code=FaultCode.HELP_REQUESTED,
            input=context.option.long,
            index=context.index,
        ))

    def _versioner(self, context):
        """
        Built-in --version callback.
        """
        self._print(render_version(self, colorful=self.colorful), title="version")
        self.trigger(VersionRequested(
            "version requested",
            title="version",
            code=FaultCode.VERSION_REQUESTED,
            input=context.option.long,
            index=context.index,
        ))

    def _print(self, renderable, *, title, stderr=False):
        if self._console is not Unset:
            console = self._console
        else:
            console = Console(stderr=stderr)

        if self.fancy:
            renderable = Panel(
                renderable,
                title=Text.assemble("[", " ", f"{self.name} {title}".upper(), " ", "]"),
                title_align="left",
            )
        console.print(renderable)

    def trigger(self, fault, /, **options):
        """
        Abort the current run with a fault or interrupt.

        - errors first print the help text on stderr so the user sees the right usage.
        - the command moves to ABORTED and remembers the fault as its interrupt.
        - the fault is surfaced with the command's runtime flags (raised, or
          rendered and exited in shell mode).
        """
        if (
                not hasattr(fault, "__trigger__") or
                not callable(fault.__trigger__) or
                not hasattr(fault, "__replace__") or
                not callable(fault.__replace__)
        ):
            raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")

        if self._console is not Unset:
            options["console"] = self._console
        fault = copy.replace(fault, **options, tool=self, shell=self.shell, fancy=self.fancy, colorful=self.colorful)

        if not isinstance(fault, CommandInterrupt):
            self._print(render_help(self, colorful=self.colorful), title="help", stderr=True)

        self._state = State.ABORTED
        self._interrupt = fault
        logger.debug("%s: aborted with %s (%s)", self.name, type(fault).__name__, fault.message)
        trigger(fault)

    def _collect(self, token):
        self._arguments.append(token)

    def _handle(self, option, input, value, index, context):
        """
        Dispatch one match: update the context, then run the bound callback.
        """
        context._update(option, value, index)
        logger.debug("%s: dispatching %r at index %d (value=%r)", self.name, input, index, value)
        option(context)

    def _getvalue(self, option, input, index, tokens):
        """
        Consume the value of a matched option according to its arity.

        - REQUIRED: always takes the next token; missing → MissingArgumentError.
        - OPTIONAL: takes the next token unless it is a registered flag or '--'.
        - NONE: never looks ahead.
        """
        match option.arity:
            case Arity.REQUIRED:
                if not tokens:
                    self.trigger(MissingArgumentError(
                        "option %r at %s position requires a value" % (input, _ordinal(index + 1)),
                        title="missing option value",
                        code=FaultCode.MISSING_ARGUMENT,
                        input=input,
                        index=index,
                        option=option,
                        hint="provide a value after %s (for example: %s %s)" % (input, input, "<%s>" % option.metavar),
                    ))
                return tokens.popleft()
            case Arity.OPTIONAL:
                if tokens and tokens[0] != TERMINATOR and tokens[0] not in self._registry:
                    return tokens.popleft()
                return None
            case _:
                return None

    def _unrecognized(self, input, index):
        names = [name for option in self._registry for name in option.names]
        suggestions = difflib.get_close_matches(input, names, 5)
        try:
            hint = "did you mean %r? you can also run '%s --help' to see all options" % (suggestions[0], self.name)
        except IndexError:
            hint = "run '%s --help' to see all options, or put '%s' before positional arguments starting with '-'" % (
                self.name, TERMINATOR
            )
        self.trigger(UnrecognizedOptionError(
            "unrecognized option %r at %s position" % (input, _ordinal(index + 1)),
            title="unrecognized option",
            code=FaultCode.UNRECOGNIZED_OPTION,
            input=input,
            index=index,
            suggestions=suggestions,
            hint=hint,
        ))

    def _parseargs(self, tokens, context):
        """
        Scan tokens left to right, dispatching options and collecting positionals.

        index is the 0-based position of the current token in the original vector;
        it advances once per consumed token (flags and their values alike).
        """
        index = 0
        literal = False

        while tokens:
            token = tokens.popleft()
            start, index = index, index + 1

            if literal:
                self._collect(token)
                continue

            if token == TERMINATOR:
                literal = True
                continue

            if (option := self._registry.lookup(token)) is None:
                if SWITCH.fullmatch(token):
                    self._unrecognized(token, start)
                    return
                self._collect(token)
                continue

            remaining = len(tokens)
            value = self._getvalue(option, token, start, tokens)
            index += remaining - len(tokens)

            self._handle(option, token, value, start, context)

    def parse(self, prompt=Unset, /):
        """
        Parse an argument vector (program name excluded).

        Parameters
        - prompt:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; split via shlex.split.
          • Iterable[str]: pre-tokenized vector, used verbatim.

        Returns
        - State.COMPLETED when every token was consumed.

        Raises
        - HelpRequested / VersionRequested from the built-in options.
        - MissingArgumentError / UnrecognizedOptionError on bad input.
        - anything raised by a callback, unchanged.
        In every raising case the command is left ABORTED.
        """
        if self._state is State.PARSING:
            raise RuntimeError("parse() cannot be called while %r is already parsing" % self.name)

        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            tokens = shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            tokens = list(prompt)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("parse() argument must be a string or an iterable of strings")
        else:
            raise TypeError("parse() argument must be a string or an iterable of strings")

        # Fresh run: nothing from a previous parse survives.
        self._arguments.clear()
        self._interrupt = None
        self._state = State.PARSING
        context = ParseContext(self)
        logger.debug("%s: parsing %d token(s)", self.name, len(tokens))

        try:
            self._parseargs(deque(tokens), context)
        except BaseException:
            self._state = State.ABORTED
            raise
        finally:
            context._close()

        self._state = State.COMPLETED
        logger.debug("%s: completed with %d positional argument(s)", self.name, len(self._arguments))
        return self._state

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__.lower(), ", ".join(
            "%s=%r" % (name, getattr(self, name)) for name in type(self).__introspectable__
        ))


def command(name=Unset, version=Unset, /, **options):
    """
    Decorator: build a Command and let the decorated function declare its options.

        @command("tool", "1.2.0", usage="[options] <file>")
        def tool(command):
            command.option("-v", "--verbose", "enable verbose output", None)

        tool.parse(["-v", "input.txt"])

    - name defaults to the decorated function's name.
    - options are forwarded to Command (usage, shell, colorful, fancy, console).
    - the decorator returns the configured Command, not the function.
    """

    def decorator(setup, /):
        if not callable(setup):
            raise TypeError("@command() must be applied to a callable")
        instance = Command(coalesce(name, getattr(setup, "__name__", Unset)), version, **options)
        setup(instance)
        return instance

    return rename(decorator, "command")


__all__ = (
    "Command",
    "ParseContext",
    "State",
    "command",
)

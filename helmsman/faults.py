"""
Helmsman faults (errors and interrupts) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
- CommandException: base type carrying message + options; knows how to render
  itself (rich) and how to surface itself (__trigger__).
- ConfigurationError: bad option registration, raised immediately at setup time.
- MissingArgumentError / UnrecognizedOptionError: parse failures.
- CommandInterrupt: normal early termination (HelpRequested / VersionRequested).
- trigger(): central entry point to surface any fault.

Integration
- The command layer builds a fault, merges its runtime options (tool, shell,
  fancy, colorful, console) through copy.replace() and calls __trigger__.
- In non-shell mode faults are raised; in shell mode they are rendered via rich
  on stderr and the process exits (1 for errors, 0 for interrupts).
"""
import copy
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - setup (1100x): CONFIGURATION
    - switches (1111x): UNRECOGNIZED_OPTION, MISSING_ARGUMENT
    - interrupts (1300x): HELP_REQUESTED, VERSION_REQUESTED

    the host application can remap codes to friendlier labels through a
    __codes__ mapping in __main__ (see normalize()).
    """
    # --- setup errors ---
    CONFIGURATION               = 11001

    # --- switch errors ---
    UNRECOGNIZED_OPTION         = 11112
    MISSING_ARGUMENT            = 11117

    # --- interrupts ---
    HELP_REQUESTED              = 13001
    VERSION_REQUESTED           = 13002

    def normalize(self):
        """
        return a host-normalized string for this code.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    base fault: a message plus a read-only mapping of rendering/context options.

    recognized options
    - tool: the Command that raised it (used for the program name).
    - code, title, hint: header and guidance.
    - input, index: the offending token and its 0-based position.
    - shell, fancy, colorful: runtime flags of the command.
    - console: rich Console used when rendering in shell mode.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def input(self):
        return self.options.get("input")

    @property
    def index(self):
        return self.options.get("index")

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment if colorful else Text(fragment.plain)
            return Text(str(fragment), style)

        tool = self.options.get("tool")
        prog = text(getattr(main, "__prog__", getattr(tool, "name", "helmsman")), styler("prog-name"))
        code = self.options.get("code")

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code.normalize() if code is not None else "", styler("code")),
            " | ",
            text(str(self.options.get("title", "error")).title(), styler("error-title")),
            " ]"
        )
        message = text(self.message, styler("error-message"))
        renders = [message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console = self.options.get("console") or Console(stderr=True)
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ConfigurationError(CommandException, ValueError):
    """
    malformed or contradictory option registration.

    raised directly by the registry at option() time; never routed through the
    shell renderer because it is a bug in the host program, not in the input.
    """


class MissingArgumentError(CommandException): ...
class UnrecognizedOptionError(CommandException): ...


class CommandInterrupt(CommandException):
    """
    normal early termination requested by a built-in option.

    not a failure: in shell mode the process exits with status 0 and nothing
    else is printed (the requested text was already rendered).
    """

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        sys.exit(0)


class HelpRequested(CommandInterrupt): ...
class VersionRequested(CommandInterrupt): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace(fault, **options).
    - in shell mode rendering happens via rich; otherwise the fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "CommandException",
    "ConfigurationError",
    "MissingArgumentError",
    "UnrecognizedOptionError",
    "CommandInterrupt",
    "HelpRequested",
    "VersionRequested",
    "trigger",
)

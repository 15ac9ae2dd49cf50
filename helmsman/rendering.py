"""
Helmsman help/version renderers.

Both renderers are pure: they read a Command's metadata and registry and
return a rich Text; writing it somewhere is the command's job.

Layout (render_help)
    prog 0.0.1
    usage: prog [options]

    options:
      -V, --version           output program version
      -h, --help              output usage information
      -r, --required <arg>    required arg
          --long-only         only a long flag
      -x                      only a short flag

- one line per option, in registration order;
- short flags, long-flag signatures and descriptions are column-aligned;
- styling applies only when colorful=True. Palette entries can be overridden
  with a __styles__ mapping in __main__.
"""
from collections import defaultdict

from rich.text import Text

from .options import Arity

# Leading spaces before the flag columns and gap before descriptions.
PADDING = 2
GUTTER = 3

PALETTE = {
    # === Head sections ===
    "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
    "program-version": "bold #00E6FF",  # CYAN version
    "usage-label": "bold #00E6FF",
    "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan

    # === Options ===
    "group-label": "bold #FFFFFF",
    "option-name": "bold #00E6FF",
    "metavar": "bold #FFD600",  # AMBER for values
    "optional-metavar": "italic #FFD600",
    "argument-description": "#9CA3AF",  # Muted gray
}


def _palette(colorful):
    styles = defaultdict(str, PALETTE | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    return styler


def _signature(option, styler):
    # "--required <arg>" with the flag and its marker styled separately
    if option.long is None:
        return Text()
    signature = Text(option.long, styler("option-name"))
    match option.arity:
        case Arity.REQUIRED:
            signature.append(" ").append("<%s>" % option.metavar, styler("metavar"))
        case Arity.OPTIONAL:
            signature.append(" ").append("[%s]" % option.metavar, styler("optional-metavar"))
    return signature


def render_help(command, /, *, colorful=False):
    """
    Render the usage/help text of a command.

    Parameters
    - command: Command (reads name, version, usage and options).
    - colorful: bool (keyword-only), apply the palette.

    Returns
    - rich.text.Text; .plain gives the undecorated text.
    """
    styler = _palette(colorful)
    options = list(command.options)

    lines = []

    header = Text(command.name, styler("program-name"))
    if command.version:
        header.append(" ").append(command.version, styler("program-version"))
    lines.append(header)

    usage = Text()
    usage.append("usage", styler("usage-label")).append(": ")
    usage.append(command.name, styler("program-name")).append(" ")
    usage.append(command.usage, styler("usage-section"))
    lines.append(usage)

    if options:
        lines.append(Text())
        lines.append(Text("options", styler("group-label")).append(":"))

        shorts = max((len(option.short) for option in options if option.short), default=0)
        longs = max((len(option.signature) for option in options if option.signature), default=0)

        # ", " separates the columns when both flags are present
        width = PADDING + (shorts + 2 if shorts else 0) + longs

        for option in options:
            line = Text(" " * PADDING)
            if option.short:
                line.append(option.short, styler("option-name"))
                if option.long:
                    line.append(", ")
                else:
                    line.append(" " * 2)
                line.append(" " * (shorts - len(option.short)))
            elif shorts:
                line.append(" " * (shorts + 2))
            line.append(_signature(option, styler))

            if option.descr:
                line.append(" " * (width - len(line) + GUTTER))
                line.append(option.descr, styler("argument-description"))
            lines.append(line)

    return Text("\n").join(lines)


def render_version(command, /, *, colorful=False):
    """
    Render the version string of a command.
    """
    return Text(command.version, _palette(colorful)("program-version"))


__all__ = (
    "render_help",
    "render_version",
)

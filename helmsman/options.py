r"""
Helmsman option specifications and registry.

Overview
- Arity: how many values a switch takes (none / optional / required).
- Option: one registered switch (short and/or long flag, description,
  arity, bound callback). Immutable once built.
- Handler: abstract single-method capability (matched(context)) accepted
  anywhere a plain callback is.
- Registry: ordered collection of Options with exact-text lookup.

Option-text grammar
- short flag: "-v" (no arity marker allowed).
- long flag: "--verbose", optionally followed by one marker token:
  • "<name>" → the switch requires a value
  • "[name]" → the switch accepts an optional value
  Anything else after the flag (unbalanced or bare words) is rejected.

Validation highlights
- At least one of short/long must be present.
- Flags must match r"--?[^\W\d_](-?[^\W_]+)*" (same shape the matcher uses to
  recognize flag-looking tokens).
- Violations raise ConfigurationError at registration time.

Quick example:
    >>> registry = Registry()
    >>> option = registry.register("-r", "--required <arg>", "required arg", print)
    >>> option.arity
    <Arity.REQUIRED: 'required'>
    >>> registry.lookup("--required") is option
    True
"""
import re
from abc import ABC, abstractmethod
from enum import StrEnum

from .faults import ConfigurationError, FaultCode
from .utils import *

# Shape of a switch name; shared with the matcher to classify flag-looking tokens.
SWITCH = re.compile(r"--?[^\W\d_](-?[^\W_]+)*")

# "<flag> <marker>" where the marker is everything after the first run of spaces.
_SIGNATURE = re.compile(r"(?P<flag>\S+)(?:\s+(?P<marker>.*?))?\s*")


class Arity(StrEnum):
    """
    Value arity of a switch, derived from its long-flag marker.
    """
    NONE = "none"
    OPTIONAL = "optional"
    REQUIRED = "required"


class Handler(ABC):
    """
    Single-method capability invoked when its option matches.

    Subclass and implement matched(); instances can be registered in place of
    a callback. Implementations keep a typed reference to whatever state they
    mutate, so no cast from the parse context is ever needed.

        class Verbose(Handler):
            def __init__(self, settings):
                self.settings = settings

            def matched(self, context):
                self.settings.verbose = True
    """

    @abstractmethod
    def matched(self, context):
        """
        Handle one occurrence of the option (context.arg holds its value).
        """
        raise NotImplementedError


def _fault(message, hint, **options):
    return ConfigurationError(
        message,
        title="bad option declaration",
        code=FaultCode.CONFIGURATION,
        hint=hint,
        **options
    )


def _sanitize_flags(metadata, /):
    """
    Internal: validate short/long flag texts and derive arity from the long one.

    Mutates metadata in place:
    - short: None | "-x"
    - long: None | "--name" (marker stripped)
    - metavar: None | name inside the marker
    - signature: long flag as declared, normalized to "<flag> <marker>"
    - arity: Arity
    """
    short, long = metadata["short"], metadata["long"]

    for name, flag in (("short", short), ("long", long)):
        if flag is not None and not isinstance(flag, str):
            raise TypeError(f"option {name} flag must be a string or None")

    if short is not None:
        short = short.strip() or None
    if long is not None:
        long = long.strip() or None

    if short is None and long is None:
        raise _fault(
            "option must declare at least one flag",
            "pass a short flag like '-v', a long flag like '--verbose', or both",
        )

    if short is not None and not SWITCH.fullmatch(short):
        raise _fault(
            "bad short flag %r" % short,
            "short flags look like '-v' and cannot carry a value marker",
            input=short,
        )

    metavar = None
    arity = Arity.NONE
    signature = None

    if long is not None:
        match = _SIGNATURE.fullmatch(long)
        flag, marker = match["flag"], match["marker"]
        if not SWITCH.fullmatch(flag):
            raise _fault(
                "bad long flag %r" % flag,
                "long flags look like '--name', '--name <value>' or '--name [value]'",
                input=long,
            )
        if marker:
            if found := re.fullmatch(r"<([^<>\[\]\s]+)>", marker):
                arity = Arity.REQUIRED
            elif found := re.fullmatch(r"\[([^<>\[\]\s]+)\]", marker):
                arity = Arity.OPTIONAL
            else:
                raise _fault(
                    "unbalanced or malformed value marker %r in %r" % (marker, long),
                    "use '<name>' for a required value or '[name]' for an optional one",
                    input=long,
                )
            metavar = found[1]
        signature = flag if not marker else "%s %s" % (flag, marker)
        long = flag

    metadata.update(short=short, long=long, metavar=metavar, arity=arity, signature=signature)


def _sanitize_callback(metadata, /):
    """
    Internal: accept a Handler instance or any callable; bind handlers to matched().
    """
    callback = metadata["callback"]
    if isinstance(callback, Handler):
        callback = callback.matched
    elif not callable(callback):
        raise TypeError("option callback must be callable or a Handler")
    metadata["callback"] = callback


class Option:
    """
    A registered switch.

    Properties (read-only)
    - short, long: flag texts (either may be None, never both).
    - metavar: value name from the long-flag marker, or None.
    - signature: long flag as shown in help ("--required <arg>").
    - descr: human-readable description.
    - arity: Arity derived from the marker.
    - callback: the bound handler.
    """

    __slots__ = ("_short", "_long", "_metavar", "_signature", "_descr", "_arity", "_callback")

    short = mirror("short")
    long = mirror("long")
    metavar = mirror("metavar")
    signature = mirror("signature")
    descr = mirror("descr")
    arity = mirror("arity")
    callback = mirror("callback")

    def __init__(self, short, long, descr="", callback=None, /):
        metadata = {
            "short": short,
            "long": long,
            "descr": descr,
            "callback": callback,
        }
        _sanitize_flags(metadata)
        if callback is not None:
            _sanitize_callback(metadata)

        if not isinstance(metadata["descr"], str):
            raise TypeError("option description must be a string")

        # Mirror sanitized metadata into private fields; read-only properties expose them.
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def names(self):
        """
        present flags in (short, long) order.
        """
        return tuple(name for name in (self.short, self.long) if name is not None)

    def __call__(self, context, /):
        if self.callback is None:
            return
        return self.callback(context)

    def __repr__(self):
        return "option(%s)" % ", ".join("%s=%r" % (name, getattr(self, name)) for name in (
            "short", "long", "arity", "descr"
        ))


class Registry:
    """
    Ordered option registry.

    - register() appends (order drives help output).
    - lookup() returns the first-registered Option owning the exact flag text.
    """

    def __init__(self):
        self._options = []
        self._index = {}

    def register(self, short, long, descr="", callback=None, /):
        """
        Build an Option and append it.

        Raises
        - ConfigurationError: no flag, malformed flag or value marker.
        - TypeError: callback is neither callable nor a Handler.
        """
        option = Option(short, long, descr, callback)
        self._options.append(option)
        for name in option.names:
            # first-registered wins on duplicate flag text
            self._index.setdefault(name, option)
        return option

    def lookup(self, token, /):
        """
        Exact-text match against short and long flags (no prefixes, no clustering).
        """
        return self._index.get(token)

    def __contains__(self, token):
        return token in self._index

    def __iter__(self):
        return iter(tuple(self._options))

    def __len__(self):
        return len(self._options)

    def __repr__(self):
        return "registry(%s)" % ", ".join(map(repr, self._options))


__all__ = (
    "Arity",
    "Handler",
    "Option",
    "Registry",
)

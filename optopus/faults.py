"""
Optopus faults (errors, warnings and signals) and rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing commandline issue.
- CommandlineError / CommandlineWarning: base types carrying a message plus a
  read-only options mapping (title, code, hint, argument, parser, ...), able to
  render themselves through rich.
- HelpNeeded / VersionNeeded: control-flow signals, not errors. Each carries the
  parser that raised it so the caller can print the right help text.
- RegistrationError: programming errors detected while options are declared.
- trigger(): central entry point to surface a fault (raise, or print and exit).
- getdoc(): optional description lookup for a code from the host application.

Integration
- The parser raises faults through trigger(fault, **ctx); with shell=False (the
  default) the fault is simply raised, so library callers catch CommandlineError.
- parse_or_exit()/die() re-trigger with shell=True to print and exit instead.
"""
import copy
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping
    - subcommands (1110x)
      • UNKNOWN_SUBCOMMAND, MISSING_SUBCOMMAND
    - tokens and resolution (1111x)
      • MALFORMED_ARGUMENT, UNKNOWN_ARGUMENT, AMBIGUOUS_ARGUMENT, DUPLICATED_ARGUMENT
    - parameters and coercion (1112x)
      • MISSING_PARAMETER, UNCASTABLE_PARAMETER, UNPERMITTED_VALUE, UNOPENABLE_RESOURCE
    - constraints (1113x)
      • MISSING_REQUIRED, UNMET_DEPENDENCY, CONFLICTING_ARGUMENTS, EITHER_VIOLATION
    - host raised (1114x)
      • USER_DEFINED
    - warnings (12xxx)
      • EMPTY_INLINE_VALUE, DELEGATED_WARNING
    """
    # --- subcommand errors (11xxx) ---
    UNKNOWN_SUBCOMMAND          = 11101
    MISSING_SUBCOMMAND          = 11102

    # --- token/resolution errors (11xxx) ---
    MALFORMED_ARGUMENT          = 11111
    UNKNOWN_ARGUMENT            = 11112
    AMBIGUOUS_ARGUMENT          = 11113
    DUPLICATED_ARGUMENT         = 11114

    # --- parameter errors (11xxx) ---
    MISSING_PARAMETER           = 11121
    UNCASTABLE_PARAMETER        = 11122
    UNPERMITTED_VALUE           = 11123
    UNOPENABLE_RESOURCE         = 11124

    # --- constraint errors (11xxx) ---
    MISSING_REQUIRED            = 11131
    UNMET_DEPENDENCY            = 11132
    CONFLICTING_ARGUMENTS       = 11133
    EITHER_VIOLATION            = 11134

    # --- host errors (11xxx) ---
    USER_DEFINED                = 11141

    # --- warnings (12xxx) ---
    EMPTY_INLINE_VALUE          = 12111
    DELEGATED_WARNING           = 12131

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


_palettes = {
    "error": {
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #00E5FF",  # neon cyan fault code
        "title": "bold #FF4DA6",  # friendly pinky title
        "message": "#C8C8D0",  # soft light gray message
        "hint-arrow": "#9CE19C dim",  # gentle green arrow
        "hint": "italic #9CE19C",  # gentle green hint text
    },
    "warning": {
        "prog-name": "bold #E6E6F0",
        "code": "bold #FFB400",  # amber code for warnings
        "title": "bold #FFC2E0",
        "message": "#D6D6DE",
        "hint-arrow": "#B8EFAF dim",
        "hint": "italic #B8EFAF",
    },
}


class _Fault:
    """
    Shared message/options plumbing and rich rendering for errors and warnings.
    """
    __palette__ = "error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, _palettes[self.__palette__] | getattr(main, "__styles__", {}))
        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            return Text(str(fragment), style)

        code = self.options.get("code")
        title = self.options.get("title", type(self).__name__)
        prog = getattr(main, "__prog__", self.options.get("prog", "")) or "error"

        header = Text.assemble(
            "[ ",
            text(prog, styler("prog-name")),
            " — ",
            text(code.normalize() if code else "?", styler("code")),
            " | ",
            text(title.title(), styler("title")),
            " ]"
        )
        message = text(self.message, styler("message"))
        renders = [message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class CommandlineError(_Fault, Exception):
    """
    Base class of every user-input error raised while parsing a commandline.

    Options commonly present
    - title, code, hint: rendering metadata.
    - argument: the offending token, when there is one.
    - parser: the parser that raised it (used to print help on error).
    - shell/educate/status: runtime switches honored by __trigger__.
    """

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("educate", False) and (parser := self.options.get("parser")) is not None:
            parser.educate(sys.stderr)
        else:
            prog = self.options.get("prog")
            console.print(f"Try '{prog} --help' for help." if prog else "Try --help for help.", markup=False)
        sys.exit(self.options.get("status", 1))


class MalformedArgumentError(CommandlineError): ...
class UnknownArgumentError(CommandlineError): ...
class AmbiguousArgumentError(CommandlineError): ...
class DuplicatedArgumentError(CommandlineError): ...
class MissingParameterError(CommandlineError): ...
class UncastableParameterError(CommandlineError): ...
class UnopenableResourceError(UncastableParameterError): ...
class UnpermittedValueError(CommandlineError): ...
class MissingRequiredError(CommandlineError): ...
class UnmetDependencyError(CommandlineError): ...
class ConflictingArgumentsError(CommandlineError): ...
class EitherConstraintError(CommandlineError): ...
class UnknownSubcommandError(CommandlineError): ...
class MissingSubcommandError(CommandlineError): ...


class CommandlineWarning(_Fault, Warning):
    __palette__ = "warning"

    def __trigger__(self):
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)


class EmptyInlineValueWarning(CommandlineWarning): ...
class DelegatedConversionWarning(CommandlineWarning): ...


class RegistrationError(ValueError):
    """
    Raised while declaring options or constraints (a programming error, never
    a user-input one): duplicate names, malformed spellings, type/default
    mismatches, unknown types and constraints over unknown options.
    """


class HelpNeeded(Exception):
    """
    Signal raised when --help was given; 'parser' is the parser whose help applies.
    """

    def __init__(self, parser=None, /):
        super().__init__("help needed")
        self.parser = parser


class VersionNeeded(Exception):
    """
    Signal raised when --version was given; 'parser' holds the version text.
    """

    def __init__(self, parser=None, /):
        super().__init__("version needed")
        self.parser = parser


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace before triggering.
    - with shell=True the fault is printed and the process exits; otherwise errors
      are raised and warnings go through the warnings module.
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
    optional documentation fetch for a fault code from a __docs__ mapping in __main__.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "CommandlineError",
    "MalformedArgumentError",
    "UnknownArgumentError",
    "AmbiguousArgumentError",
    "DuplicatedArgumentError",
    "MissingParameterError",
    "UncastableParameterError",
    "UnopenableResourceError",
    "UnpermittedValueError",
    "MissingRequiredError",
    "UnmetDependencyError",
    "ConflictingArgumentsError",
    "EitherConstraintError",
    "UnknownSubcommandError",
    "MissingSubcommandError",
    "CommandlineWarning",
    "EmptyInlineValueWarning",
    "DelegatedConversionWarning",
    "RegistrationError",
    "HelpNeeded",
    "VersionNeeded",
    "trigger",
    "getdoc",
)

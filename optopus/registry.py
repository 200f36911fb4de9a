r"""
Optopus option types and the type registry.

Overview
- OptionType: the interface every option type implements.
  • flag / plural / optional: shape of the commandline value (no parameter, a run of
    parameters, or a parameter that may be left out).
  • format: label suffix used by the help renderer (e.g. "=<i>").
  • convert(option, text): turn one raw parameter into a value.
  • coerce(option, groups, negated): convert every parameter of every occurrence.
  • admits(value): whether a default value is compatible with the type.

- Built-in types
  • FlagType, IntegerType, FloatType, StringType, DateType, IOType, StringFlagType
  • IntegerListType, FloatListType, StringListType, DateListType, IOListType (multi-value)

- Registry
  • register(tag, cls) / @register(tag): make a type reachable by a string tag.
  • lookup(source): resolve a tag, an OptionType subclass/instance or a Python class.
  • infer(value): type implied by a default value (bool is checked before int).
  • plural(kind): multi-value counterpart of a single-value type.

Conversion failures raise CommandlineError subclasses; any other exception escaping
convert() is re-raised as UncastableParameterError, and warnings emitted during
conversion are re-emitted as DelegatedConversionWarning.

Quick example
    >>> @register("upper")
    ... class UpperType(StringType):
    ...     def convert(self, option, text):
    ...         return text.upper()
"""
import builtins
import datetime
import functools
import io
import operator
import re
import sys
from warnings import catch_warnings

from dateutil import parser as date_parser

from .faults import *
from .utils import *

_INTEGER = re.compile(r"-?[\d_]*\d[\d_]*")
_FLOAT = re.compile(r"-?((\d+(\.\d+)?)|(\.\d+))([eE][-+]?[\d]+)?")
_STDIN = re.compile(r"stdin|-", re.IGNORECASE)


class OptionKind(type):
    """
    Metaclass for option types.

    - Derives __typename__ from the class name (IntegerType -> "integer-type").
    - Validates the shape attributes of every (including user-defined) type.
    - Provides a compact __repr__/__rich_repr__ for diagnostics.
    """
    __introspectable__ = ("format", "flag", "plural", "optional")

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {"__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower()},
        )

        for attribute in ("flag", "plural", "optional"):
            if not isinstance(getattr(self, attribute, False), bool):
                raise TypeError(f"{self.__typename__} {attribute!r} must be a boolean")
        if not isinstance(getattr(self, "format", ""), str):
            raise TypeError(f"{self.__typename__} 'format' must be a string")
        if getattr(self, "flag", False) and getattr(self, "plural", False):
            raise TypeError(f"{self.__typename__} cannot be both a flag and multi-value")

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


class OptionType(metaclass=OptionKind):
    """
    Base class of every option type.

    Subclasses override convert() (and admits() to validate defaults). Types that
    need the whole occurrence list, such as flags, override coerce() instead.
    """
    flag = False
    plural = False
    optional = False
    format = ""
    default = None

    def describe(self):
        return self.format

    @classmethod
    def admits(cls, value):
        return True

    def convert(self, option, text):
        raise NotImplementedError(f"{type(self).__typename__} must implement convert()")

    def coerce(self, option, groups, negated=False):
        """
        Convert raw parameter groups (one list per occurrence) into values.

        Non-string entries are defaults substituted for missing parameters and
        are passed through untouched.
        """
        return [[self._delegate(option, text) for text in group] for group in groups]

    def _delegate(self, option, text):
        if not isinstance(text, str):
            return text
        try:
            with catch_warnings(record=True) as records:
                value = self.convert(option, text)
        except CommandlineError:
            raise
        except Exception as exception:
            raise UncastableParameterError(
                "option '--%s' cannot convert %r: %s" % (option.long, text, exception),
                title="uncastable parameter",
                code=FaultCode.UNCASTABLE_PARAMETER,
                argument="--" + option.long,
                hint="check the value format; expected %s" % (self.format.strip("=") or "a valid value"),
                docs=getdoc(FaultCode.UNCASTABLE_PARAMETER),
            ) from exception
        for warning in map(lambda record: record.message, records):
            trigger(DelegatedConversionWarning(
                "value %r for option '--%s' raised a conversion warning: %s" % (text, option.long, warning),
                title="conversion warning",
                code=FaultCode.DELEGATED_WARNING,
                argument="--" + option.long,
                warning=warning,
                docs=getdoc(FaultCode.DELEGATED_WARNING),
            ))
        return value


def _uncastable(option, text, expected):
    return UncastableParameterError(
        "option '--%s' needs %s" % (option.long, expected),
        title="uncastable parameter",
        code=FaultCode.UNCASTABLE_PARAMETER,
        argument="--" + option.long,
        given=text,
        hint="%r is not %s" % (text, expected),
        docs=getdoc(FaultCode.UNCASTABLE_PARAMETER),
    )


class FlagType(OptionType):
    flag = True
    default = False

    @classmethod
    def admits(cls, value):
        return isinstance(value, bool)

    def coerce(self, option, groups, negated=False):
        # options named no_* are true when negated
        return negated if option.name.startswith("no_") else not negated


class IntegerType(OptionType):
    format = "=<i>"

    @classmethod
    def admits(cls, value):
        return isinstance(value, int) and not isinstance(value, bool)

    def convert(self, option, text):
        if not _INTEGER.fullmatch(text):
            raise _uncastable(option, text, "an integer")
        return int(text.replace("_", ""))


class FloatType(OptionType):
    format = "=<f>"

    @classmethod
    def admits(cls, value):
        return isinstance(value, int | float) and not isinstance(value, bool)

    def convert(self, option, text):
        if not _FLOAT.fullmatch(text):
            raise _uncastable(option, text, "a floating-point number")
        return float(text)


class StringType(OptionType):
    format = "=<s>"

    @classmethod
    def admits(cls, value):
        return isinstance(value, str)

    def convert(self, option, text):
        return text


class DateType(OptionType):
    """
    Calendar dates; "today", "yesterday" and "tomorrow" are understood, anything
    else goes through dateutil's parser.
    """
    format = "=<date>"

    @classmethod
    def admits(cls, value):
        return isinstance(value, datetime.date)

    def convert(self, option, text):
        today = datetime.date.today()
        match text.strip().lower():
            case "today":
                return today
            case "yesterday":
                return today - datetime.timedelta(days=1)
            case "tomorrow":
                return today + datetime.timedelta(days=1)
        try:
            return date_parser.parse(text).date()
        except (ValueError, OverflowError):
            raise _uncastable(option, text, "a date") from None


class IOType(OptionType):
    """
    Readable streams: "-" and "stdin" map to sys.stdin, anything else is opened as a file.
    """
    format = "=<filename>"

    @classmethod
    def admits(cls, value):
        return isinstance(value, io.IOBase)

    def convert(self, option, text):
        if _STDIN.fullmatch(text):
            return sys.stdin
        try:
            return open(text)
        except OSError as exception:
            raise UnopenableResourceError(
                "file for option '--%s' cannot be opened: %s" % (option.long, exception.strerror or exception),
                title="unopenable file",
                code=FaultCode.UNOPENABLE_RESOURCE,
                argument="--" + option.long,
                given=text,
                hint="check that %r exists and is readable" % text,
                docs=getdoc(FaultCode.UNOPENABLE_RESOURCE),
            ) from exception


class StringFlagType(StringType):
    """
    A string whose parameter may be left out.

    - no parameter: the string default, or True when there is none
    - negated (--no-x): False
    - a parameter: that string
    """
    optional = True
    format = "=<s?>"
    default = False

    @classmethod
    def admits(cls, value):
        return isinstance(value, str | bool)

    def coerce(self, option, groups, negated=False):
        if negated:
            return [[False] for _ in groups]
        fallback = option.default if isinstance(option.default, str) else True
        return [[self._delegate(option, text) for text in group] or [fallback] for group in groups]


class IntegerListType(IntegerType):
    plural = True
    format = "=<i+>"


class FloatListType(FloatType):
    plural = True
    format = "=<f+>"


class StringListType(StringType):
    plural = True
    format = "=<s+>"


class DateListType(DateType):
    plural = True
    format = "=<date+>"


class IOListType(IOType):
    plural = True
    format = "=<filename+>"


_registry = {}

_plurals = {
    IntegerType: IntegerListType,
    FloatType: FloatListType,
    StringType: StringListType,
    DateType: DateListType,
    IOType: IOListType,
}

# bool must precede int (bool is an int subclass)
_classes = {
    bool: FlagType,
    int: IntegerType,
    float: FloatType,
    str: StringType,
    datetime.date: DateType,
    io.IOBase: IOType,
}


def register(*parameters):
    """
    Register an option type under a tag, or return a decorator that will.

    Forms
    - register(tag, cls) -> cls
    - register(tag) -> decorator

    Raises
    - TypeError: tag is not a string, or cls is not an OptionType subclass.
    - ValueError: tag is empty.
    """
    match len(parameters):
        case 2:
            tag, cls = parameters
            if not isinstance(tag, str):
                raise TypeError("register() first argument must be a string")
            elif not (tag := tag.strip().lower()):
                raise ValueError("register() first argument cannot be empty")
            if not isinstance(cls, builtins.type) or not issubclass(cls, OptionType):
                raise TypeError("register() second argument must be an option-type subclass")
            _registry[tag] = cls
            return cls
        case 1:
            tag, = parameters

            def wrapper(cls):
                return register(tag, cls)

            return rename(wrapper, "register")
        case _:
            raise TypeError("register takes 1 to 2 arguments but %d were given" % len(parameters))


def lookup(source, /):
    """
    Resolve a type specification into an OptionType instance.

    Accepts
    - a registered tag ("int", "strings", ...), case-insensitive;
    - an OptionType subclass or instance;
    - a Python class (bool, int, float, str, datetime.date, io.IOBase subclasses).

    Raises
    - RegistrationError: unknown tag or unsupported class.
    - TypeError: anything else.
    """
    match source:
        case OptionType():
            return source
        case str():
            try:
                return _registry[source.strip().lower()]()
            except KeyError:
                raise RegistrationError(f"unsupported argument type '{source}'") from None
        case builtins.type() if issubclass(source, OptionType):
            return source()
        case builtins.type():
            for cls, kind in _classes.items():
                if issubclass(source, cls):
                    return kind()
            raise RegistrationError(f"unsupported argument type '{source.__name__}'")
        case _:
            raise TypeError("lookup() argument must be a type tag, an option type or a class")


def infer(value, /):
    """
    Return the OptionType implied by a default value.
    """
    for cls, kind in _classes.items():
        if isinstance(value, cls):
            return kind()
    raise RegistrationError(f"unsupported argument type '{type(value).__name__}'")


def plural(kind, /):
    """
    Return the multi-value counterpart of a single-value type instance.
    """
    if kind.plural:
        return kind
    for cls in type(kind).__mro__:
        if cls in _plurals:
            return _plurals[cls]()
    raise RegistrationError(f"{type(kind).__typename__} has no multi-value form")


for _tag, _cls in (
        ("flag", FlagType), ("bool", FlagType), ("boolean", FlagType),
        ("int", IntegerType), ("integer", IntegerType), ("fixnum", IntegerType),
        ("float", FloatType), ("double", FloatType),
        ("string", StringType), ("str", StringType),
        ("date", DateType),
        ("io", IOType),
        ("stringflag", StringFlagType),
        ("ints", IntegerListType), ("integers", IntegerListType), ("fixnums", IntegerListType),
        ("floats", FloatListType), ("doubles", FloatListType),
        ("strings", StringListType),
        ("dates", DateListType),
        ("ios", IOListType),
):
    register(_tag, _cls)
del _tag, _cls


__all__ = (
    # Interface
    "OptionType",

    # Built-in types
    "FlagType",
    "IntegerType",
    "FloatType",
    "StringType",
    "DateType",
    "IOType",
    "StringFlagType",
    "IntegerListType",
    "FloatListType",
    "StringListType",
    "DateListType",
    "IOListType",

    # Registry
    "register",
    "lookup",
    "infer",
    "plural",
)

# The metaclass travels with OptionType; it is not part of the public API.
del OptionKind

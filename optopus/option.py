r"""
Optopus option descriptors.

Overview
- Option: a normalized, validated record of one commandline option.
  • Identity: name (result key), long spelling, short spellings, long aliases (alt).
  • Shape: type (an OptionType instance), multi (may repeat), default.
  • Policy: required, hidden, permitted (+ permitted_response), callback.

- Introspection & representation
  • The OptionDescriptorType metaclass exposes every field listed in __introspectable__
    as a read-only property and provides __repr__/__rich_repr__.

Metadata (sanitized on construction)
- name: non-empty string.
- long: Unset (derived from name, "_" -> "-") | "--name" | "name".
  Rejected: "", "--", "-x", "---x" and anything containing whitespace or "=".
- short: Unset (assigned automatically at parse time) | None (no short) | "-c" | "c"
  | iterable of those. Digits and "-" are rejected.
- alt: str | iterable[str], extra long spellings following the long rules.
- type/default/multi: reconciled into a concrete OptionType (see _sanitize_kind).
- permitted: collection (not a string), range, or compiled pattern.
- permitted_response: str.format template with {arg}, {permitted} and {given}.
- callback: callable invoked with the final value after a successful parse.

Type and default reconciliation
- An explicit type and the type inferred from default must agree.
- A list default without an explicit type implies the multi-value form of its first
  element's type, unless multi is set: then the option is multi-occurrence only.
- An empty list default cannot imply a type.
- A scalar default on a multi option is boxed into a one-element list.

Quick example
    >>> Option("count", "how many", short="c", type="int", default=3).describe()
    '-c, --count=<i>'
"""
import functools
import operator
import re
import sys
from collections.abc import Collection, Iterable

from .faults import *
from .registry import FlagType, lookup, infer, plural
from .utils import *

_LONG = re.compile(r"(?:--)?(?P<long>[^-\s=][^\s=]*)")
_SHORT = re.compile(r"-?(?P<short>[^\s\d-])")


class OptionDescriptorType(type):
    """
    Metaclass exposing __introspectable__ fields as read-only properties.

    - __typename__ is derived from the class name and used in registration messages.
    - __displayable__ (if set) narrows what __rich_repr__ shows.
    """
    __introspectable__ = ()
    __displayable__ = Unset

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
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_names(cls, metadata, /):
    """
    Internal: validate name/descr and normalize the long, short and alt spellings.

    Mutates metadata in place; 'short' becomes a tuple of characters and
    'auto_short' records whether the parser may assign one later.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise RegistrationError(f"{cls.__typename__} 'name' cannot be empty")
    metadata["name"] = name

    if not isinstance(metadata["descr"], str):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")

    def longify(spelling, field):
        if not isinstance(spelling, str):
            raise TypeError(f"{cls.__typename__} {field!r} must be a string")
        if not (match := _LONG.fullmatch(spelling)):
            raise RegistrationError(f"invalid long option name {spelling!r}")
        return match["long"]

    metadata["long"] = longify(coalesce(metadata["long"], name.replace("_", "-")), "long")

    alts = metadata["alt"]
    if isinstance(alts, str):
        alts = (alts,)
    elif not isinstance(alts, Iterable):
        raise TypeError(f"{cls.__typename__} 'alt' must be a string or an iterable of strings")
    sanitized = []
    for alt in map(lambda x: longify(x, "alt"), alts):
        if alt == metadata["long"] or alt in sanitized:
            raise RegistrationError(f"long option name '--{alt}' is already taken")
        sanitized.append(alt)
    metadata["alt"] = tuple(sanitized)

    short = metadata["short"]
    metadata["auto_short"] = short is Unset
    if short is Unset or short is None:
        shorts = ()
    elif isinstance(short, str):
        shorts = (short,)
    elif isinstance(short, Iterable):
        shorts = tuple(short)
    else:
        raise TypeError(f"{cls.__typename__} 'short' must be a string, an iterable of strings or None")

    sanitized = []
    for spelling in shorts:
        if not isinstance(spelling, str):
            raise TypeError(f"{cls.__typename__} 'short' must be a string, an iterable of strings or None")
        if not (match := _SHORT.fullmatch(spelling)):
            raise RegistrationError(f"invalid short option name {spelling!r}")
        if match["short"] in sanitized:
            raise RegistrationError(f"short option name '-{match["short"]}' is already taken")
        sanitized.append(match["short"])
    metadata["short"] = tuple(sanitized)


def _sanitize_kind(cls, metadata, /):
    """
    Internal: reconcile 'type', 'default' and 'multi' into a concrete OptionType.

    Rules
    - explicit type + list default: the type must be multi-value, or multi must be set.
    - explicit multi-value type + scalar default: mismatch.
    - no type + list default: element type (multi) or its multi-value form (otherwise);
      an empty list cannot imply a type.
    - no type + scalar default: the inferred type; no type and no default: a flag.
    - every default element must be admitted by the resolved type.
    - a scalar default on a multi option is boxed into a list.
    """
    source, default, multi = metadata["type"], metadata["default"], metadata["multi"]
    kind = lookup(source) if source is not Unset and source is not None else Unset

    if isinstance(default, list | tuple):
        elements = list(default)
        if kind is Unset:
            if not elements:
                raise RegistrationError("multiple argument type cannot be deduced from an empty array")
            kind = infer(elements[0]) if multi else plural(infer(elements[0]))
        elif not kind.plural and not multi:
            raise RegistrationError("type specification and default type don't match (default type is array)")
        default = elements
    elif default is not Unset and default is not None:
        if kind is Unset:
            kind = infer(default)
        elif kind.plural:
            raise RegistrationError("type specification and default type don't match (default type is not array)")
        elements = [default]
        if multi and not kind.flag:
            default = [default]
    else:
        elements = []
        kind = coalesce(kind, FlagType())
        default = kind.default

    for element in elements:
        if not kind.admits(element):
            raise RegistrationError(
                f"type specification and default type don't match "
                f"(type is {type(kind).__typename__}, default is {type(element).__name__})"
            )

    metadata["type"] = kind
    metadata["default"] = default


def _sanitize_policy(cls, metadata, /):
    """
    Internal: validate permitted/permitted_response/callback.
    """
    permitted = metadata["permitted"]
    if permitted is Unset or permitted is None:
        permitted = None
    elif isinstance(permitted, str | bytes):
        raise TypeError(f"{cls.__typename__} 'permitted' must be a collection, a range or a pattern")
    elif isinstance(permitted, range | re.Pattern):
        pass
    elif isinstance(permitted, Collection):
        permitted = tuple(permitted)
    else:
        raise TypeError(f"{cls.__typename__} 'permitted' must be a collection, a range or a pattern")
    metadata["permitted"] = permitted

    if not isinstance(response := metadata["permitted_response"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'permitted_response' must be a string")
    metadata["permitted_response"] = coalesce(response)
    if response and permitted is None:
        raise RegistrationError(f"{cls.__typename__} 'permitted_response' requires 'permitted'")

    if (callback := metadata["callback"]) is not Unset and not callable(callback):
        raise TypeError(f"{cls.__typename__} 'callback' must be callable")
    metadata["callback"] = coalesce(callback)


def _flatten(value):
    if isinstance(value, list):
        for item in value:
            yield from _flatten(item)
    elif not isinstance(value, bool):
        yield value


class Option(metaclass=OptionDescriptorType):
    """
    Descriptor of a single commandline option.

    Options are normally built through Parser.opt(), which also checks the
    spellings against the rest of the parser; building one directly is useful
    for introspection and tests.

    Properties
    - name, descr, long, shorts, alts, type, multi, default, required, hidden,
      permitted, permitted_response, callback, auto_short: sanitized metadata.
    - short: first short spelling (or None).
    - flag / single_arg / multi_arg: the value shape.
    - kind: "flag", "single" or "multi".
    """

    __introspectable__ = (
        "name",
        "descr",
        "long",
        "shorts",
        "alts",
        "type",
        "multi",
        "default",
        "required",
        "hidden",
        "permitted",
        "permitted_response",
        "callback",
        "auto_short",
    )

    __displayable__ = (
        "name",
        "long",
        "shorts",
        "alts",
        "type",
        "multi",
        "default",
    )

    def __new__(
            cls,
            name,
            descr="",
            /,
            *,
            long=Unset,
            short=Unset,
            alt=(),
            type=Unset,
            default=Unset,
            required=False,
            multi=False,
            hidden=False,
            permitted=Unset,
            permitted_response=Unset,
            callback=Unset,
    ):
        """
        Construct an Option from registration metadata.

        Raises
        - TypeError: a field has the wrong Python type.
        - RegistrationError: a field has the right type but an invalid value
          (malformed spelling, type/default mismatch, unknown type, ...).
        """
        metadata = {
            "name": name,
            "descr": descr,
            "long": long,
            "short": short,
            "alt": alt,
            "type": type,
            "default": default,
            "required": bool(required),
            "multi": bool(multi),
            "hidden": bool(hidden),
            "permitted": permitted,
            "permitted_response": permitted_response,
            "callback": callback,
        }
        _sanitize_names(cls, metadata)
        _sanitize_kind(cls, metadata)
        _sanitize_policy(cls, metadata)

        self = super().__new__(cls)
        metadata["shorts"] = metadata.pop("short")
        metadata["alts"] = metadata.pop("alt")
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def short(self):
        return self._shorts[0] if self._shorts else None

    @property
    def flag(self):
        return self._type.flag

    @property
    def multi_arg(self):
        return self._type.plural

    @property
    def single_arg(self):
        return not self._type.plural and not self._type.flag

    @property
    def kind(self):
        return "flag" if self.flag else "multi" if self.multi_arg else "single"

    def describe(self, shorts=Unset, /):
        """
        Help label: shorts, long, aliases, type format and the --no- form of
        flags that default to true (e.g. "-c, --cat, --feline=<s>").

        'shorts' replaces the option's own short spellings, as the parser does
        for shorts it would assign automatically.
        """
        shorts = coalesce(shorts, self._shorts)
        spellings = [f"-{short}" for short in shorts] + [f"--{long}" for long in (self._long, *self._alts)]
        label = ", ".join(spellings) + self._type.describe()
        if self.flag and self._default:
            label += f", --no-{self._long}"
        return label

    def describe_default(self):
        """
        Default as shown in help, or None when there is nothing worth showing.
        """
        default = self._default
        if default is None or default is False or (isinstance(default, str | list) and not default):
            return None

        def render(value):
            if value is sys.stdin:
                return "<stdin>"
            if value is sys.stdout:
                return "<stdout>"
            if value is sys.stderr:
                return "<stderr>"
            if hasattr(value, "isoformat"):
                return value.isoformat()
            return str(value)

        if isinstance(default, list):
            return ", ".join(map(render, default))
        return render(default)

    def describe_permitted(self):
        match self._permitted:
            case None:
                return None
            case range() as permitted if permitted.step == 1:
                return f"{permitted.start}..{permitted.stop - 1}"
            case range() as permitted:
                return str(permitted)
            case re.Pattern() as permitted:
                return permitted.pattern
            case permitted:
                return ", ".join(map(str, permitted))

    def permits(self, value, /):
        match self._permitted:
            case None:
                return True
            case range() as permitted:
                return value in permitted
            case re.Pattern() as permitted:
                return permitted.search(str(value)) is not None
            case permitted:
                return str(value) in map(str, permitted)

    def validate(self, value, /):
        """
        Check every scalar in a parsed value against 'permitted'.

        Raises
        - UnpermittedValueError: naming the option, the permitted values and
          the offending one (or rendered from permitted_response).
        """
        if self._permitted is None:
            return value
        for item in _flatten(value):
            if self.permits(item):
                continue
            if self._permitted_response:
                message = self._permitted_response.format(
                    arg=f"--{self._long}", permitted=self.describe_permitted(), given=item
                )
            else:
                match self._permitted:
                    case range():
                        expected = "a value in range of"
                    case re.Pattern():
                        expected = "a value matching"
                    case _:
                        expected = "one of"
                message = f"option '--{self._long}' only accepts {expected}: {self.describe_permitted()}"
            raise UnpermittedValueError(
                message,
                title="unpermitted value",
                code=FaultCode.UNPERMITTED_VALUE,
                argument=f"--{self._long}",
                given=item,
                hint="use a permitted value (%s)" % self.describe_permitted(),
                docs=getdoc(FaultCode.UNPERMITTED_VALUE),
            )
        return value


__all__ = (
    "Option",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del OptionDescriptorType

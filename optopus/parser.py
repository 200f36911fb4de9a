r"""
Optopus parser: declare options, parse argv, render help.

What this module provides
- Parser: option registration plus the parsing engine.
  • opt(), banner()/text(), version()/usage()/synopsis(), depends()/conflicts()/either(),
    stop_on()/stop_on_unknown(), subcmd().
  • parse(argv) -> Values, raising CommandlineError / HelpNeeded / VersionNeeded.
  • educate(stream) / help_text(width): the help screen.
  • die() / parse_or_exit(): print-and-exit conveniences for scripts.
- Settings: immutable, validated parser configuration.
- Values: read-only mapping of results, with <name>_given markers and leftovers.
- options(setup, argv, ...): build a Parser through a setup function and parse_or_exit.

Parsing pipeline
- scan: walk argv left to right, one decision per position (stop words, "--",
  "--name=value", "--name params...", "-abc params...", bare tokens).
- resolve: each flag token goes to an Option by short, long/alias, "--no-" negation
  and, when enabled, unambiguous prefix; unknown tokens get did-you-mean hints.
- constrain: depends/conflicts/either and required options, after the scan.
- coerce: per-type conversion, shape collapsing, permitted-value checks.
- dispatch: with subcommands, the first leftover selects a nested Parser which
  parses the rest.
- callbacks: run last, once nothing else can fail.

Notes
- A Parser is not meant for concurrent parse() calls; results are rebuilt per call
  but the last leftovers are kept on the instance.
"""
import collections
import difflib
import os
import re
import shlex
import sys
from collections.abc import Iterable, Mapping

from rich.console import Console
from rich.text import Text

from .faults import *
from .option import Option
from .utils import *

# a token that starts a new option rather than being a parameter
_PARAMETER = re.compile(r"-(-|\.$|[^\d.])")
_INVALID_SHORT = re.compile(r"[\d-]")


class Settings(collections.namedtuple("Settings", (
    "inexact_match",
    "suggestions",
    "no_short_opts",
    "disable_auto_short_opts",
    "educate_on_error",
    "ignore_invalid_options",
    "colorful",
    "fancy",
), defaults=(False, True, False, False, False, False, True, False))):
    """
    Parser-level configuration.

    Fields
    - inexact_match: resolve unknown long options by unambiguous prefix.
    - suggestions: add did-you-mean hints to unknown-argument errors.
    - no_short_opts / disable_auto_short_opts: never assign shorts automatically.
    - educate_on_error: print the help screen when die()/parse_or_exit() report an error.
    - ignore_invalid_options: keep unknown options as leftovers instead of failing.
    - colorful / fancy: rendering of errors (styles / panel chrome).
    """
    __slots__ = ()

    def __new__(cls, /, **settings):
        for name, value in settings.items():
            if name not in cls._fields:
                raise TypeError(f"settings got an unexpected setting {name!r}")
            if not isinstance(value, bool):
                raise TypeError(f"settings {name!r} must be a boolean")
        return super().__new__(cls, **settings)


class Values(Mapping):
    """
    Read-only result of Parser.parse().

    - values[name]: the parsed value (or the default).
    - values[name + "_given"]: True when the option appeared on the commandline.
    - leftovers: tokens that were not consumed, as a tuple.
    - subcommand / subcommand_values: the chosen subcommand and its Values (or None).
    - parser: the parser that produced these values.
    """

    def __init__(self, values, leftovers=(), /, *, parser=None, subcommand=None, subcommand_values=None):
        self._values = dict(values)
        self._leftovers = tuple(leftovers)
        self._parser = parser
        self._subcommand = subcommand
        self._subcommand_values = subcommand_values

    def __getitem__(self, name):
        return self._values[name]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        return f"values({self._values!r}, leftovers={self._leftovers!r})"

    def given(self, name, /):
        """
        Whether option 'name' appeared on the commandline.
        """
        if name not in self._values:
            raise KeyError(name)
        return self._values[name + "_given"]

    leftovers = mirror("leftovers")
    parser = property(lambda self: self._parser)
    subcommand = property(lambda self: self._subcommand)
    subcommand_values = property(lambda self: self._subcommand_values)


class Parser:
    """
    Commandline option parser.

    Construction
    - Parser(setup=Unset, /, *args, **settings): settings build a Settings; setup,
      when given, is called as setup(parser, *args) to register options.

    Registration
    - opt(name, descr, **options) -> Option: see Option for the accepted options.
    - banner(text) / text(text): free text, interleaved with options in help.
    - version/usage/synopsis(text=Unset): setters when given text, getters otherwise.
    - depends/conflicts/either(*names): constraints between options.
    - stop_on(*words) / stop_on_unknown(): where scanning stops.
    - subcmd(name, descr, setup, *args) -> Parser: nested parser for a subcommand.

    Parsing
    - parse(argv=Unset) -> Values
      • Unset: sys.argv[1:]; str: shell-split; iterable: strings only.
      • Adds --version (when a version is set) and --help unless already declared.
      • Raises CommandlineError subclasses, HelpNeeded or VersionNeeded.
    """

    def __init__(self, setup=Unset, /, *args, **settings):
        if setup is not Unset and not callable(setup):
            raise TypeError("Parser() first argument must be callable")
        self._settings = Settings(**settings)
        self._specs = {}
        self._long = {}
        self._short = {}
        self._order = []
        self._constraints = []
        self._stop_words = []
        self._stop_on_unknown = False
        self._subcommands = {}
        self._builtins = set()
        self._version = Unset
        self._usage = Unset
        self._synopsis = Unset
        self._leftovers = []
        self._parent = None
        self._name = None
        self._descr = ""
        if setup is not Unset:
            setup(self, *args)

    def __repr__(self):
        return f"parser({self.program!r}, options={list(self._specs)!r})"

    specs = mirror("specs")
    order = mirror("order")
    constraints = mirror("constraints")
    stop_words = mirror("stop_words")
    leftovers = mirror("leftovers")
    subcommands = mirror("subcommands")

    @property
    def settings(self):
        return self._settings

    @property
    def parent(self):
        return self._parent

    @property
    def name(self):
        return self._name

    @property
    def descr(self):
        return self._descr

    @property
    def program(self):
        """
        Program name shown in help and errors; subcommands append their name.
        """
        if self._parent is not None:
            return f"{self._parent.program} {self._name}"
        if prog := getattr(__import__("__main__"), "__prog__", None):
            return prog
        return os.path.splitext(os.path.basename(sys.argv[0] if sys.argv else ""))[0]

    # ── registration ───────────────────────────────────────────────────────────

    def opt(self, name, descr="", /, **options):
        """
        Declare an option and return its descriptor.

        Raises
        - RegistrationError: duplicate name, long, alias or short, or any error
          from building the Option itself.
        - TypeError: wrong Python types in the registration call.
        """
        option = Option(name, descr, **options)

        if option.name in self._specs:
            raise RegistrationError(f"you already have an argument named '{option.name}'")
        for long in (option.long, *option.alts):
            if long in self._long:
                raise RegistrationError(f"long option name '--{long}' is already taken; please specify a (different) long")
        for short in option.shorts:
            if short in self._short:
                raise RegistrationError(f"short option name '-{short}' is already taken; please specify a (different) short")

        self._specs[option.name] = option
        for long in (option.long, *option.alts):
            self._long[long] = option.name
        for short in option.shorts:
            self._short[short] = option.name
        self._order.append(("opt", option.name))
        return option

    def banner(self, text, /):
        """
        Add free text to the help screen, at the current position.
        """
        if not isinstance(text, str):
            raise TypeError("banner() argument must be a string")
        self._order.append(("text", text))

    text = banner

    def version(self, text=Unset, /):
        if text is Unset:
            return coalesce(self._version)
        if not isinstance(text, str):
            raise TypeError("version() argument must be a string")
        self._version = text

    def usage(self, text=Unset, /):
        if text is Unset:
            return coalesce(self._usage)
        if not isinstance(text, str):
            raise TypeError("usage() argument must be a string")
        self._usage = text

    def synopsis(self, text=Unset, /):
        if text is Unset:
            return coalesce(self._synopsis)
        if not isinstance(text, str):
            raise TypeError("synopsis() argument must be a string")
        self._synopsis = text

    def _constrain(self, kind, names):
        for name in names:
            if name not in self._specs:
                raise RegistrationError(f"unknown option '{name}'")
        if len(names) < 2:
            raise RegistrationError(f"{kind}() requires at least two options")
        self._constraints.append((kind, tuple(names)))

    def depends(self, *names):
        """
        If any of the options is given, all of them must be.
        """
        self._constrain("depends", names)

    def conflicts(self, *names):
        """
        At most one of the options may be given.
        """
        self._constrain("conflicts", names)

    def either(self, *names):
        """
        Exactly one of the options must be given.
        """
        self._constrain("either", names)

    def stop_on(self, *words):
        """
        Stop scanning at any of these words; they and what follows become leftovers.
        Words may be given as strings or iterables of strings.
        """
        for word in words:
            if isinstance(word, str):
                self._stop_words.append(word)
            elif isinstance(word, Iterable):
                self.stop_on(*word)
            else:
                raise TypeError("stop_on() arguments must be strings or iterables of strings")

    def stop_on_unknown(self):
        """
        Stop scanning at the first token that is not an option or a parameter.
        """
        self._stop_on_unknown = True

    def subcmd(self, name, descr="", setup=Unset, /, *args):
        """
        Declare a subcommand backed by a nested Parser and return that parser.

        The nested parser inherits the settings; setup(parser, *args), when given,
        registers its options. The name also becomes a stop word of this parser.
        """
        if not isinstance(name, str):
            raise TypeError("subcmd() first argument must be a string")
        elif not (name := name.strip()):
            raise RegistrationError("subcommand name cannot be empty")
        if not isinstance(descr, str):
            raise TypeError("subcmd() second argument must be a string")
        if name in self._subcommands:
            raise RegistrationError(f"you already have a subcommand named '{name}'")
        if setup is not Unset and not callable(setup):
            raise TypeError("subcmd() third argument must be callable")

        parser = Parser(**self._settings._asdict())
        parser._parent = self
        parser._name = name
        parser._descr = descr
        self._subcommands[name] = parser
        self.stop_on(name)
        if setup is not Unset:
            setup(parser, *args)
        return parser

    # ── faults ─────────────────────────────────────────────────────────────────

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this parser's context (raises unless shell=True).
        """
        trigger(
            fault,
            **{
                "parser": self,
                "prog": self.program,
                "colorful": self._settings.colorful,
                "fancy": self._settings.fancy,
                "educate": self._settings.educate_on_error,
            } | options
        )

    def _hint(self, suggestions=()):
        if suggestions:
            return "did you mean %s? you can also run '%s --help' to see all options" % (
                " or ".join(map(repr, suggestions)), self.program
            )
        return "run '%s --help' to see all options" % self.program

    # ── scanning ───────────────────────────────────────────────────────────────

    def _collect(self, tokens, start):
        parameters = []
        while start < len(tokens) and not _PARAMETER.match(tokens[start]) and tokens[start] not in self._stop_words:
            parameters.append(tokens[start])
            start += 1
        return parameters

    def _scan(self, tokens, consume):
        """
        Walk the tokens, handing (flag, parameters) pairs to consume().

        consume() returns how many parameters it took (the others are scanned as
        ordinary tokens next) or None when the flag is ignored as unknown.
        Returns the leftovers.
        """
        leftovers = []
        index = 0
        while index < len(tokens):
            token = tokens[index]

            if token in self._stop_words:
                return leftovers + tokens[index:]

            if token == "--":
                return leftovers + tokens[index + 1:]

            if match := re.fullmatch(r"--(\S+?)=(.*)", token, re.DOTALL):
                if not match[2]:
                    self.trigger(EmptyInlineValueWarning(
                        "empty inline value for option '--%s'" % match[1],
                        title="empty inline value",
                        code=FaultCode.EMPTY_INLINE_VALUE,
                        argument="--" + match[1],
                        hint="add a value after '=' (for example: --%s=<value>)" % match[1],
                        docs=getdoc(FaultCode.EMPTY_INLINE_VALUE),
                    ))
                if consume("--" + match[1], [match[2]]) is None:
                    leftovers.append(token)
                index += 1
            elif re.fullmatch(r"--\S+", token):
                taken = consume(token, self._collect(tokens, index + 1))
                if taken is None:
                    if self._stop_on_unknown:
                        return leftovers + tokens[index:]
                    leftovers.append(token)
                index += 1 + (taken or 0)
            elif match := re.fullmatch(r"-(\S+)", token):
                *heads, last = match[1]
                for char in heads:
                    if consume("-" + char, []) is None:
                        leftovers.append("-" + char)
                taken = consume("-" + last, self._collect(tokens, index + 1))
                if taken is None:
                    if self._stop_on_unknown:
                        return leftovers + tokens[index:]
                    leftovers.append("-" + last)
                index += 1 + (taken or 0)
            else:
                if self._stop_on_unknown:
                    return leftovers + tokens[index:]
                leftovers.append(token)
                index += 1

        return leftovers

    # ── resolution ─────────────────────────────────────────────────────────────

    def _resolve(self, token):
        """
        Map a flag token to (option name, negated), or (None, negated) when unknown.
        """
        arg, negated = token, False
        if match := re.fullmatch(r"--no-([^-]\S*)", token):
            arg, negated = "--" + match[1], True

        if match := re.fullmatch(r"-([^-])", arg):
            name = self._short.get(match[1])
        elif match := re.fullmatch(r"--([^-]\S*)", arg):
            name = self._long.get(match[1]) or self._long.get("no-" + match[1])
        else:
            return self.trigger(MalformedArgumentError(
                "invalid argument syntax: '%s'" % token,
                title="malformed argument",
                code=FaultCode.MALFORMED_ARGUMENT,
                argument=token,
                hint="options look like -x, --name or --name=value; run '%s --help' for details" % self.program,
                docs=getdoc(FaultCode.MALFORMED_ARGUMENT),
            ))

        if "--no-" in arg:
            return self.trigger(MalformedArgumentError(
                "invalid argument syntax: '%s'" % token,
                title="double negation",
                code=FaultCode.MALFORMED_ARGUMENT,
                argument=token,
                hint="use either '%s' or '--%s'" % (arg, arg[len("--no-"):]),
                docs=getdoc(FaultCode.MALFORMED_ARGUMENT),
            ))

        if name is None and self._settings.inexact_match and arg.startswith("--"):
            prefix = arg[2:]
            matched = [key for key in self._long if key.startswith(prefix)]
            names = list(dict.fromkeys(self._long[key] for key in matched))
            if len(names) == 1:
                name = names[0]
            elif names:
                return self.trigger(AmbiguousArgumentError(
                    "ambiguous option '%s' matched keys (%s)" % (token, ", ".join(matched)),
                    title="ambiguous option",
                    code=FaultCode.AMBIGUOUS_ARGUMENT,
                    argument=token,
                    candidates=tuple(matched),
                    hint="type more of the name: %s" % ", ".join("--" + key for key in matched),
                    docs=getdoc(FaultCode.AMBIGUOUS_ARGUMENT),
                ))

        return name, negated

    def _unknown(self, token):
        suggestions = []
        if self._settings.suggestions:
            suggestions = difflib.get_close_matches(token, ["--" + key for key in self._long], n=3, cutoff=0.6)
        message = "unknown argument '%s'" % token
        if self._parent is not None:
            message += " for command '%s'" % self._name
        self.trigger(UnknownArgumentError(
            message,
            title="unknown argument",
            code=FaultCode.UNKNOWN_ARGUMENT,
            argument=token,
            suggestions=tuple(suggestions),
            hint=self._hint(suggestions),
            docs=getdoc(FaultCode.UNKNOWN_ARGUMENT),
        ))

    # ── parsing ────────────────────────────────────────────────────────────────

    def _tokenize(self, argv):
        if argv is Unset:
            return list(sys.argv[1:])
        if isinstance(argv, str):
            return shlex.split(argv)
        if isinstance(argv, Iterable):
            tokens = list(argv)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("parse() argument must be a string or an iterable of strings")
            return tokens
        raise TypeError("parse() argument must be a string or an iterable of strings")

    def _settle(self):
        """
        Options as parse() sees them: the declared ones plus the built-in
        --version/--help, with automatic shorts assigned in declaration order.

        Returns (specs, order, shorts) and leaves the parser untouched.
        """
        specs, order = dict(self._specs), list(self._order)
        if self._version is not Unset and "version" not in specs and "version" not in self._long:
            specs["version"] = Option("version", "Print version and exit")
            order.append(("opt", "version"))
        if "help" not in specs and "help" not in self._long:
            specs["help"] = Option("help", "Show this message")
            order.append(("opt", "help"))

        shorts = {name: option.shorts for name, option in specs.items()}
        if not (self._settings.no_short_opts or self._settings.disable_auto_short_opts):
            taken = set(self._short)
            for what, name in order:
                if what != "opt" or shorts[name] or not specs[name].auto_short:
                    continue
                for char in specs[name].long:
                    if not _INVALID_SHORT.fullmatch(char) and char not in taken:
                        shorts[name] = (char,)
                        taken.add(char)
                        break
        return specs, order, shorts

    def _prepare(self):
        """
        Commit what _settle() computes, right before scanning.
        """
        specs, order, shorts = self._settle()
        for name in specs.keys() - self._specs.keys():
            self._specs[name] = specs[name]
            self._long[specs[name].long] = name
            self._builtins.add(name)
        self._order = order
        for name, spellings in shorts.items():
            if spellings != self._specs[name].shorts:
                self._specs[name]._shorts = spellings
                for char in spellings:
                    self._short[char] = name

    def _check_constraints(self, given):
        def spell(names):
            return ", ".join("--" + self._specs[name].long for name in names)

        for kind, names in self._constraints:
            present = [name for name in names if name in given]
            match kind:
                case "depends" if present and len(present) < len(names):
                    self.trigger(UnmetDependencyError(
                        "%s have a dependency and must be given together" % spell(names),
                        title="unmet dependency",
                        code=FaultCode.UNMET_DEPENDENCY,
                        given=tuple(present),
                        missing=tuple(name for name in names if name not in given),
                        hint="also give %s" % spell(name for name in names if name not in given),
                        docs=getdoc(FaultCode.UNMET_DEPENDENCY),
                    ))
                case "conflicts" if len(present) > 1:
                    self.trigger(ConflictingArgumentsError(
                        "only one of %s can be given" % spell(names),
                        title="conflicting options",
                        code=FaultCode.CONFLICTING_ARGUMENTS,
                        given=tuple(present),
                        hint="remove %s" % spell(present[1:]),
                        docs=getdoc(FaultCode.CONFLICTING_ARGUMENTS),
                    ))
                case "either" if len(present) != 1:
                    self.trigger(EitherConstraintError(
                        "one and only one of %s is required" % spell(names),
                        title="either constraint",
                        code=FaultCode.EITHER_VIOLATION,
                        given=tuple(present),
                        hint="give exactly one of %s" % spell(names),
                        docs=getdoc(FaultCode.EITHER_VIOLATION),
                    ))

        for name, option in self._specs.items():
            if option.required and name not in given and (option.default is None or option.default is False):
                self.trigger(MissingRequiredError(
                    "option --%s must be specified" % option.long,
                    title="missing required option",
                    code=FaultCode.MISSING_REQUIRED,
                    argument="--" + option.long,
                    hint="add --%s to the commandline" % option.long,
                    docs=getdoc(FaultCode.MISSING_REQUIRED),
                ))

    def _coerce(self, option, entry):
        groups = entry["groups"]
        if not option.flag and not option.type.optional:
            for index, group in enumerate(groups):
                if group:
                    continue
                if option.default is None or option.default == []:
                    self.trigger(MissingParameterError(
                        "option '%s' needs a parameter" % entry["arg"],
                        title="missing parameter",
                        code=FaultCode.MISSING_PARAMETER,
                        argument=entry["arg"],
                        hint="give a value (for example: --%s=<value>)" % option.long,
                        docs=getdoc(FaultCode.MISSING_PARAMETER),
                    ))
                groups[index] = list(option.default) if isinstance(option.default, list) else [option.default]

        try:
            value = option.type.coerce(option, groups, entry["negated"])
        except CommandlineError as fault:
            self.trigger(fault)

        if option.single_arg:
            value = [group[0] for group in value] if option.multi else value[0][0]
        elif option.multi_arg and not option.multi:
            value = value[0]

        try:
            return option.validate(value)
        except CommandlineError as fault:
            self.trigger(fault)

    def parse(self, argv=Unset, /):
        """
        Parse argv into Values.

        Raises
        - CommandlineError (subclasses): invalid user input.
        - HelpNeeded / VersionNeeded: --help / --version was given.
        """
        tokens = self._tokenize(argv)
        self._prepare()

        given = {}

        def consume(token, parameters):
            name, negated = self._resolve(token)
            if name is None:
                if self._settings.ignore_invalid_options:
                    return None
                self._unknown(token)

            option = self._specs[name]
            if name in given and not option.multi:
                self.trigger(DuplicatedArgumentError(
                    "option '%s' specified multiple times" % token,
                    title="duplicated option",
                    code=FaultCode.DUPLICATED_ARGUMENT,
                    argument=token,
                    hint="--%s can be given only once" % option.long,
                    docs=getdoc(FaultCode.DUPLICATED_ARGUMENT),
                ))

            entry = given.setdefault(name, {"groups": []})
            entry["arg"] = token
            entry["negated"] = negated

            if option.flag:
                group = []
            elif option.single_arg:
                group = parameters[:1]
            else:
                group = list(parameters)
            entry["groups"].append(group)
            return len(group)

        leftovers = self._scan(tokens, consume)

        if "version" in given and "version" in self._builtins:
            raise VersionNeeded(self)
        if "help" in given:
            raise HelpNeeded(self)

        self._check_constraints(given)

        values = {}
        for name, option in self._specs.items():
            if option.multi and option.default is None:
                values[name] = []
            else:
                values[name] = option.default
            values[name + "_given"] = False

        for name, entry in given.items():
            values[name] = self._coerce(self._specs[name], entry)
            values[name + "_given"] = True

        subcommand = subcommand_values = None
        if self._subcommands:
            if not leftovers:
                self.trigger(MissingSubcommandError(
                    "no subcommand provided",
                    title="missing subcommand",
                    code=FaultCode.MISSING_SUBCOMMAND,
                    hint="use one of: %s" % ", ".join(self._subcommands),
                    docs=getdoc(FaultCode.MISSING_SUBCOMMAND),
                ))
            subcommand, *rest = leftovers
            if subcommand not in self._subcommands:
                suggestions = difflib.get_close_matches(subcommand, self._subcommands.keys(), n=3, cutoff=0.6)
                self.trigger(UnknownSubcommandError(
                    "unknown subcommand '%s'" % subcommand,
                    title="unknown subcommand",
                    code=FaultCode.UNKNOWN_SUBCOMMAND,
                    argument=subcommand,
                    suggestions=tuple(suggestions),
                    hint="use one of: %s" % ", ".join(self._subcommands),
                    docs=getdoc(FaultCode.UNKNOWN_SUBCOMMAND),
                ))
            subcommand_values = self._subcommands[subcommand].parse(rest)
            leftovers = list(subcommand_values.leftovers)

        # only once nothing else can fail
        for name in given:
            if (callback := self._specs[name].callback) is not None:
                callback(values[name])

        self._leftovers = leftovers
        return Values(
            values,
            leftovers,
            parser=self,
            subcommand=subcommand,
            subcommand_values=subcommand_values,
        )

    # ── help ───────────────────────────────────────────────────────────────────

    def _render_help(self, console, width):
        """
        Build the help screen as a rich Text (plain text plus styles).

        Works on the settled view of the options (built-ins, automatic shorts)
        without committing it, so registration stays open after help is shown.
        """
        specs, order, shorts = self._settle()
        styles = collections.defaultdict(str, {
            "heading": "bold #FFFFFF",
            "usage-label": "bold #00E6FF",
            "program-name": "bold #FF4D94",
            "option-name": "bold #00E6FF",
            "command-name": "bold #36C5F0",
        } | getattr(__import__("__main__"), "__styles__", {}))

        def styler(style):
            return styles[style] if self._settings.colorful else ""

        labels = {name: option.describe(shorts[name]) for name, option in specs.items()}
        leftcol = max(map(len, labels.values()), default=0)
        rightcol = leftcol + 6

        screen = Text()

        def line(*fragments):
            screen.append_text(Text.assemble(*fragments))
            screen.append("\n")

        def wrap(text, width):
            # a word wider than the column is kept whole
            segments = Text(text.rstrip("\n"), overflow="ignore").wrap(console, max(width, 1))
            for segment in segments:
                segment.rstrip()
            return list(segments) or [Text()]

        if not (order and order[0][0] == "text"):
            if self._usage is not Unset:
                line(("Usage:", styler("usage-label")), " ", (self.program, styler("program-name")), " ", self._usage)
            if self._synopsis is not Unset:
                line(self._synopsis)
            if self._usage is not Unset or self._synopsis is not Unset:
                line()
            if self._version is not Unset:
                line(self._version)
            line(("Options:", styler("heading")))

        for what, item in order:
            if what == "text":
                for segment in wrap(item, width - 1):
                    line(segment)
                continue

            option = specs[item]
            if option.hidden:
                continue

            descr = option.descr
            if (default := option.describe_default()) is not None:
                descr += (" (Default: %s)" if descr.endswith(".") else " (default: %s)") % default

            head = Text.assemble("  ", (labels[item], styler("option-name")), " " * (leftcol - len(labels[item]) + 4))
            first, *rest = wrap(descr, width - rightcol - 1)
            line(head, first)
            for segment in rest:
                line(" " * rightcol, segment)

        if self._subcommands:
            line()
            line(("Commands:", styler("heading")))
            namecol = max(map(len, self._subcommands))
            for name, parser in self._subcommands.items():
                line("  ", (name, styler("command-name")), (" " * (namecol - len(name) + 4) + parser.descr).rstrip())

        return screen

    def help_text(self, width=80, /):
        """
        Return the help screen as plain text wrapped at 'width' columns.
        """
        return self._render_help(Console(width=width, highlight=False), width).plain

    def educate(self, stream=Unset, /):
        """
        Print the help screen to 'stream' (stdout by default).
        """
        stream = coalesce(stream, sys.stdout)
        console = Console(file=stream, highlight=False)
        screen = self._render_help(console, console.width)
        screen.rstrip()
        console.print(screen, soft_wrap=True)

    # ── exit conveniences ─────────────────────────────────────────────────────

    def die(self, argument, message=Unset, /, *, status=1):
        """
        Report an error and exit with 'status'.

        - die("message"): prints "message".
        - die("name", "message"): prints "argument --long message" for option 'name'.
        """
        if message is not Unset:
            if argument not in self._specs:
                raise RegistrationError(f"unknown option '{argument}'")
            text = "argument --%s %s" % (self._specs[argument].long, message)
        else:
            text = str(argument)
        self.trigger(CommandlineError(
            text,
            title="error",
            code=FaultCode.USER_DEFINED,
            argument=argument if message is not Unset else None,
            docs=getdoc(FaultCode.USER_DEFINED),
        ), shell=True, status=status)

    def parse_or_exit(self, argv=Unset, /):
        """
        parse(), then turn signals and errors into output and an exit status.

        - CommandlineError: rendered on stderr (help too with educate_on_error), exit 1.
        - HelpNeeded: the relevant parser's help on stdout, exit 0.
        - VersionNeeded: the version on stdout, exit 0.
        """
        try:
            return self.parse(argv)
        except CommandlineError as fault:
            trigger(fault, shell=True)
        except HelpNeeded as signal:
            coalesce(signal.parser, self).educate()
            sys.exit(0)
        except VersionNeeded as signal:
            Console(file=sys.stdout, highlight=False).print(
                Text(coalesce((signal.parser or self)._version, "")), soft_wrap=True
            )
            sys.exit(0)


def options(setup, argv=Unset, /, *args, **settings):
    """
    Build a Parser with setup(parser, *args) and parse_or_exit(argv).

    The returned Values keep the parser in 'values.parser', e.g. for
    values.parser.die("name", "must be positive").
    """
    if not callable(setup):
        raise TypeError("options() first argument must be callable")
    return Parser(setup, *args, **settings).parse_or_exit(argv)


__all__ = (
    "Settings",
    "Values",
    "Parser",
    "options",
)

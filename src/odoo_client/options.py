"""
Per-call option validation and defaulting.

Every public client operation accepts a bag of options.  This module holds
the declarative rule table (one :class:`OptionRule` per option name, one
:class:`OperationRules` entry per :class:`OperationKind`) and resolves a
supplied bag into a complete, validated options dict.

No I/O occurs here; resolution is a pure function of its inputs so that
validation failures surface before any network call.

Resolution order per option:
    supplied value  >  per-client configured default  >  library default
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum

from .config import DEFAULT_OPTIONS
from .errors import ValidationError


class OperationKind(str, Enum):
    """Operation kinds, each with its own set of registered options."""

    DEFAULTS = "defaults"
    SEARCH = "search"
    SEARCH_READ = "search_read"
    SEARCH_COUNT = "search_count"
    READ = "read"
    CREATE = "create"
    WRITE = "write"
    UNLINK = "unlink"
    READ_GROUP = "read_group"
    REPORT = "report"


class _Unlimited:
    """Sentinel type for an unbounded ``limit``."""

    _instance: _Unlimited | None = None

    def __new__(cls) -> _Unlimited:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNLIMITED"

    def __copy__(self) -> _Unlimited:
        return self

    def __deepcopy__(self, memo: dict) -> _Unlimited:
        return self


# Pass as ``limit`` to fetch every matching record.
UNLIMITED = _Unlimited()

_NO_DEFAULT = object()


# ---------------------------------------------------------------------------
# Rule definitions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OptionRule:
    """
    Type constraint, default and extra value predicate for one option.

    Attributes:
        name: Option name as accepted by the client methods.
        types: Accepted Python types.  ``bool`` is only accepted when listed
            explicitly, even though it subclasses ``int``.
        type_name: Human-readable type description for error messages.
        default: Library default, or ``_NO_DEFAULT`` when the caller must
            always supply the option.
        predicate: Extra value check applied after the type check.
        constraint: Description of what ``predicate`` enforces.
    """

    name: str
    types: tuple[type, ...]
    type_name: str
    default: object = _NO_DEFAULT
    predicate: Callable[[object], bool] | None = None
    constraint: str = ""

    @property
    def has_default(self) -> bool:
        return self.default is not _NO_DEFAULT

    def accepts_type(self, value: object) -> bool:
        if isinstance(value, bool) and bool not in self.types:
            return False
        return isinstance(value, self.types)


@dataclass(frozen=True)
class OperationRules:
    """Options registered for an operation kind, and the subset it requires."""

    registered: tuple[str, ...]
    required: frozenset[str]


def _all_strings(values: object) -> bool:
    return all(isinstance(item, str) for item in values)


def _all_integers(values: object) -> bool:
    return all(isinstance(item, int) and not isinstance(item, bool) for item in values)


def _non_negative(value: object) -> bool:
    return value is UNLIMITED or value >= 0


OPTION_RULES: dict[str, OptionRule] = {
    rule.name: rule
    for rule in (
        OptionRule("model", (str,), "string"),
        OptionRule("report", (str,), "string"),
        OptionRule("domain", (list, tuple), "list", default=DEFAULT_OPTIONS["domain"]),
        OptionRule("data", (dict,), "mapping"),
        OptionRule(
            "ids", (list, tuple), "list",
            predicate=_all_integers, constraint="every entry must be an integer",
        ),
        OptionRule(
            "fields", (list, tuple), "list", default=DEFAULT_OPTIONS["fields"],
            predicate=_all_strings, constraint="every entry must be a string",
        ),
        OptionRule(
            "group_by", (list, tuple), "list",
            predicate=_all_strings, constraint="every entry must be a string",
        ),
        OptionRule(
            "offset", (int,), "integer", default=DEFAULT_OPTIONS["offset"],
            predicate=_non_negative, constraint="must be non-negative",
        ),
        OptionRule(
            "limit", (int, _Unlimited), "integer or UNLIMITED",
            default=DEFAULT_OPTIONS["limit"],
            predicate=_non_negative, constraint="must be non-negative",
        ),
        OptionRule("order", (str,), "string", default=DEFAULT_OPTIONS["order"]),
        OptionRule("context", (dict,), "mapping", default=DEFAULT_OPTIONS["context"]),
        OptionRule("lazy", (bool,), "boolean", default=DEFAULT_OPTIONS["lazy"]),
    )
}


def _operation(registered: tuple[str, ...], required: tuple[str, ...] = ()) -> OperationRules:
    """Build an :class:`OperationRules` entry, checking it against the rule table."""
    unknown = [name for name in registered if name not in OPTION_RULES]
    if unknown:
        raise ValueError(f"No rule defined for option(s): {', '.join(unknown)}")

    unregistered = [name for name in required if name not in registered]
    if unregistered:
        raise ValueError(
            f"Option(s) {', '.join(unregistered)} must be registered before "
            "they can be required."
        )

    for name in registered:
        if name not in required and not OPTION_RULES[name].has_default:
            raise ValueError(f"Optional option '{name}' has no library default.")

    return OperationRules(registered=registered, required=frozenset(required))


OPERATION_RULES: dict[OperationKind, OperationRules] = {
    OperationKind.DEFAULTS: _operation(
        ("offset", "limit", "order", "fields", "context", "lazy"),
    ),
    OperationKind.SEARCH: _operation(
        ("model", "domain", "fields", "offset", "limit", "order", "context"),
        required=("model",),
    ),
    OperationKind.SEARCH_READ: _operation(
        ("model", "domain", "fields", "offset", "limit", "order", "context"),
        required=("model",),
    ),
    OperationKind.SEARCH_COUNT: _operation(
        ("model", "domain", "fields", "context"),
        required=("model",),
    ),
    OperationKind.READ: _operation(
        ("model", "ids", "fields", "context"),
        required=("model", "ids"),
    ),
    OperationKind.CREATE: _operation(
        ("model", "data", "context"),
        required=("model", "data"),
    ),
    OperationKind.WRITE: _operation(
        ("model", "ids", "data", "context"),
        required=("model", "ids", "data"),
    ),
    OperationKind.UNLINK: _operation(
        ("model", "ids", "context"),
        required=("model", "ids"),
    ),
    OperationKind.READ_GROUP: _operation(
        ("model", "domain", "fields", "group_by", "offset", "limit", "order", "lazy", "context"),
        required=("model", "group_by"),
    ),
    OperationKind.REPORT: _operation(
        ("report", "ids", "context"),
        required=("report", "ids"),
    ),
}


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def _check(rule: OptionRule, value: object) -> object:
    """Validate one value against its rule and return a detached copy."""
    if not rule.accepts_type(value):
        raise ValidationError(
            rule.name,
            f"expected {rule.type_name}, got {type(value).__name__}",
        )

    if rule.predicate is not None and not rule.predicate(value):
        raise ValidationError(rule.name, rule.constraint)

    if isinstance(value, tuple):
        return copy.deepcopy(list(value))
    return copy.deepcopy(value)


def resolve_options(
    kind: OperationKind,
    supplied: Mapping[str, object],
    defaults: Mapping[str, object] | None = None,
) -> dict:
    """
    Resolve a supplied options bag into a complete, validated options dict.

    Args:
        kind: Operation kind selecting the registered/required option sets.
        supplied: Options passed by the caller.
        defaults: Per-client configured defaults; keys not registered for
            ``kind`` are ignored.

    Returns:
        New dict holding every option registered for ``kind``.

    Raises:
        ValidationError: Unknown option, wrong type, missing required option,
            or failed value predicate.
    """
    rules = OPERATION_RULES[kind]
    defaults = defaults or {}

    for name in supplied:
        if name not in rules.registered:
            raise ValidationError(name, f"unknown option for '{kind.value}'")

    resolved: dict = {}
    for name in rules.registered:
        rule = OPTION_RULES[name]

        if name in supplied:
            value = supplied[name]
        elif name in defaults:
            value = defaults[name]
        elif name in rules.required:
            raise ValidationError(name, "missing required option")
        else:
            value = rule.default

        resolved[name] = _check(rule, value)

    return resolved


class OptionValidator:
    """
    Holds a client's configured defaults and resolves options against them.

    Args:
        logger: Optional diagnostic sink; receives a debug trace of every
            resolved options dict.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger
        self.defaults: dict = resolve_options(OperationKind.DEFAULTS, {})

    def configure_defaults(self, options: Mapping[str, object]) -> dict:
        """Override the library defaults for every subsequent call."""
        self.defaults = self.resolve(OperationKind.DEFAULTS, options)
        return self.defaults

    def resolve(self, kind: OperationKind, supplied: Mapping[str, object]) -> dict:
        resolved = resolve_options(kind, supplied, self.defaults)
        if self.logger is not None:
            self.logger.debug(
                "Resolved %s options", kind.value, extra={"payload": resolved}
            )
        return resolved

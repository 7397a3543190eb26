"""
Unit tests for src/odoo_client/options.py.

Covers the rule table (registration before requirement), defaulting order
(supplied > configured > library), every validation failure reason, the
UNLIMITED limit sentinel, and idempotent resolution.
"""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from src.odoo_client.errors import ValidationError
from src.odoo_client.options import (
    OPERATION_RULES,
    UNLIMITED,
    OperationKind,
    OptionValidator,
    _operation,
    resolve_options,
)


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

class TestRuleTable:

    def test_every_kind_has_rules(self):
        assert set(OPERATION_RULES) == set(OperationKind)

    def test_required_options_are_registered(self):
        for rules in OPERATION_RULES.values():
            assert rules.required <= set(rules.registered)

    def test_requiring_unregistered_option_is_rejected(self):
        with pytest.raises(ValueError, match="registered before"):
            _operation(("model",), required=("model", "ids"))

    def test_unknown_rule_is_rejected(self):
        with pytest.raises(ValueError, match="No rule"):
            _operation(("model", "colour"))

    def test_optional_option_without_default_is_rejected(self):
        with pytest.raises(ValueError, match="no library default"):
            _operation(("model", "ids"), required=("model",))


# ---------------------------------------------------------------------------
# Defaulting
# ---------------------------------------------------------------------------

class TestDefaults:

    def test_search_library_defaults(self):
        resolved = resolve_options(
            OperationKind.SEARCH,
            {"model": "res.partner", "domain": [["active", "=", True]], "limit": 10},
        )
        assert resolved == {
            "model": "res.partner",
            "domain": [["active", "=", True]],
            "fields": [],
            "offset": 0,
            "limit": 10,
            "order": "name ASC",
            "context": {},
        }

    def test_search_read_defaults_fields_to_all(self):
        resolved = resolve_options(OperationKind.SEARCH_READ, {"model": "res.partner"})
        assert resolved["fields"] == []
        assert resolved["domain"] == []

    def test_read_group_defaults_lazy(self):
        resolved = resolve_options(
            OperationKind.READ_GROUP, {"model": "sale.order", "group_by": ["state"]}
        )
        assert resolved["lazy"] is True

    def test_configured_default_beats_library_default(self):
        resolved = resolve_options(
            OperationKind.SEARCH, {"model": "res.partner"}, {"limit": 5, "order": "id DESC"}
        )
        assert resolved["limit"] == 5
        assert resolved["order"] == "id DESC"

    def test_supplied_value_beats_configured_default(self):
        resolved = resolve_options(
            OperationKind.SEARCH, {"model": "res.partner", "limit": 20}, {"limit": 5}
        )
        assert resolved["limit"] == 20

    def test_configured_defaults_outside_kind_are_ignored(self):
        resolved = resolve_options(
            OperationKind.UNLINK, {"model": "res.partner", "ids": [1]}, {"limit": 5, "lazy": False}
        )
        assert set(resolved) == {"model", "ids", "context"}

    def test_defaults_are_not_shared_between_calls(self):
        first = resolve_options(OperationKind.SEARCH, {"model": "res.partner"})
        first["domain"].append(["id", "=", 1])
        first["context"]["lang"] = "fr_FR"

        second = resolve_options(OperationKind.SEARCH, {"model": "res.partner"})
        assert second["domain"] == []
        assert second["context"] == {}

    def test_tuples_are_normalized_to_lists(self):
        resolved = resolve_options(
            OperationKind.READ, {"model": "res.partner", "ids": (1, 2), "fields": ("name",)}
        )
        assert resolved["ids"] == [1, 2]
        assert resolved["fields"] == ["name"]


# ---------------------------------------------------------------------------
# Validation failures
# ---------------------------------------------------------------------------

class TestValidationFailures:

    def _fails_on(self, kind, supplied, option):
        with pytest.raises(ValidationError) as excinfo:
            resolve_options(kind, supplied)
        assert excinfo.value.option == option
        return excinfo.value

    def test_unknown_option(self):
        error = self._fails_on(
            OperationKind.SEARCH, {"model": "res.partner", "lazy": False}, "lazy"
        )
        assert "unknown option" in error.constraint

    def test_missing_required_option(self):
        error = self._fails_on(OperationKind.READ, {"model": "res.partner"}, "ids")
        assert "missing" in error.constraint

    def test_wrong_type(self):
        error = self._fails_on(
            OperationKind.SEARCH, {"model": "res.partner", "offset": "10"}, "offset"
        )
        assert "integer" in error.constraint

    def test_non_integer_id(self):
        error = self._fails_on(OperationKind.READ, {"model": "res.partner", "ids": ["abc"]}, "ids")
        assert "integer" in error.constraint

    def test_boolean_id_is_not_an_integer(self):
        self._fails_on(OperationKind.UNLINK, {"model": "res.partner", "ids": [True]}, "ids")

    def test_non_string_field(self):
        self._fails_on(
            OperationKind.SEARCH_READ, {"model": "res.partner", "fields": ["name", 3]}, "fields"
        )

    def test_non_string_group_by(self):
        self._fails_on(
            OperationKind.READ_GROUP, {"model": "sale.order", "group_by": [None]}, "group_by"
        )

    def test_negative_offset(self):
        self._fails_on(OperationKind.SEARCH, {"model": "res.partner", "offset": -1}, "offset")

    def test_boolean_limit_is_rejected(self):
        error = self._fails_on(
            OperationKind.SEARCH, {"model": "res.partner", "limit": False}, "limit"
        )
        assert "bool" in error.constraint

    def test_string_lazy_is_rejected(self):
        self._fails_on(
            OperationKind.READ_GROUP,
            {"model": "sale.order", "group_by": ["state"], "lazy": "yes"},
            "lazy",
        )

    def test_data_must_be_mapping(self):
        self._fails_on(OperationKind.CREATE, {"model": "res.partner", "data": [("name", "x")]}, "data")

    def test_error_message_names_option(self):
        error = self._fails_on(OperationKind.READ, {"model": "res.partner", "ids": ["abc"]}, "ids")
        assert "'ids'" in str(error)


# ---------------------------------------------------------------------------
# UNLIMITED and idempotency
# ---------------------------------------------------------------------------

class TestUnlimited:

    def test_unlimited_is_accepted_as_limit(self):
        resolved = resolve_options(OperationKind.SEARCH, {"model": "res.partner", "limit": UNLIMITED})
        assert resolved["limit"] is UNLIMITED

    def test_unlimited_is_a_singleton(self):
        assert type(UNLIMITED)() is UNLIMITED
        assert repr(UNLIMITED) == "UNLIMITED"


class TestIdempotency:

    @pytest.mark.parametrize("kind, supplied", [
        (OperationKind.SEARCH, {"model": "res.partner", "limit": UNLIMITED}),
        (OperationKind.SEARCH_READ, {"model": "res.partner", "fields": ("name", "email")}),
        (OperationKind.READ, {"model": "res.partner", "ids": [1, 2, 3]}),
        (OperationKind.WRITE, {"model": "res.partner", "ids": [1], "data": {"name": "A"}}),
        (OperationKind.READ_GROUP, {"model": "sale.order", "group_by": ["state"], "lazy": False}),
        (OperationKind.REPORT, {"report": "sale.report_saleorder", "ids": [4]}),
        (OperationKind.DEFAULTS, {}),
    ])
    def test_resolving_resolved_options_is_a_no_op(self, kind, supplied):
        resolved = resolve_options(kind, supplied)
        assert resolve_options(kind, resolved) == resolved


# ---------------------------------------------------------------------------
# OptionValidator
# ---------------------------------------------------------------------------

class TestOptionValidator:

    def test_starts_with_library_defaults(self):
        validator = OptionValidator()
        assert validator.defaults == {
            "offset": 0,
            "limit": 100,
            "order": "name ASC",
            "fields": [],
            "context": {},
            "lazy": True,
        }

    def test_configure_defaults_applies_to_later_calls(self):
        validator = OptionValidator()
        validator.configure_defaults({"limit": 25, "context": {"lang": "nl_NL"}})

        resolved = validator.resolve(OperationKind.SEARCH, {"model": "res.partner"})
        assert resolved["limit"] == 25
        assert resolved["context"] == {"lang": "nl_NL"}
        assert resolved["order"] == "name ASC"

    def test_configure_defaults_rejects_operation_options(self):
        validator = OptionValidator()
        with pytest.raises(ValidationError) as excinfo:
            validator.configure_defaults({"model": "res.partner"})
        assert excinfo.value.option == "model"

    def test_failed_configuration_keeps_previous_defaults(self):
        validator = OptionValidator()
        validator.configure_defaults({"limit": 25})
        with pytest.raises(ValidationError):
            validator.configure_defaults({"limit": -3})
        assert validator.defaults["limit"] == 25

    def test_debug_trace_sent_to_logger(self):
        sink = MagicMock(spec=logging.Logger)
        validator = OptionValidator(logger=sink)
        resolved = validator.resolve(OperationKind.SEARCH, {"model": "res.partner"})

        sink.debug.assert_called_once()
        assert sink.debug.call_args.kwargs["extra"] == {"payload": resolved}

    def test_no_logger_is_a_no_op(self):
        validator = OptionValidator()
        assert validator.resolve(OperationKind.SEARCH, {"model": "res.partner"})["model"] == "res.partner"

"""Tests for the error hierarchy."""

from __future__ import annotations

import pytest

from dagmod.errors import (
    AmbiguousConstructorError,
    ConfigNotFoundError,
    DagmodError,
    ErrorCodes,
    FunctionInvocationError,
    FunctionNotFoundError,
    MissingArgumentError,
    ObjectNotFoundError,
    QueryError,
    error_message,
)


class TestDagmodError:
    """Base error behaviour."""

    def test_str_includes_code(self):
        err = DagmodError(code="X", message="went wrong")
        assert str(err) == "[X] went wrong"
        assert err.details == {}
        assert err.cause is None
        assert err.timestamp

    def test_cause_is_kept(self):
        cause = OSError("disk")
        err = ConfigNotFoundError("/nope.yaml", cause=cause)
        assert err.cause is cause
        assert err.details["config_path"] == "/nope.yaml"


class TestMessages:
    """Messages reported to the engine."""

    def test_missing_argument(self):
        err = MissingArgumentError("name")
        assert err.message == "Missing required argument 'name'."
        assert err.argument_name == "name"
        assert err.code == ErrorCodes.MISSING_ARGUMENT

    def test_missing_constructor_argument(self):
        err = MissingArgumentError("name", constructor=True)
        assert err.message == "Missing required constructor argument 'name'."
        assert err.details["constructor"] is True

    def test_lookups(self):
        assert ObjectNotFoundError("Ghost").message == "Module object 'Ghost' is not registered."
        assert (
            FunctionNotFoundError("Greeter", "nope").message == "Function 'nope' not found on module object 'Greeter'."
        )

    def test_ambiguous_constructor(self):
        err = AmbiguousConstructorError("Repo", ["create", "open"])
        assert "create, open" in err.message
        assert err.details["candidates"] == ["create", "open"]

    def test_query_error_accessors(self):
        err = QueryError("bad", [{"message": "bad"}], "query{x}")
        assert err.errors == [{"message": "bad"}]
        assert err.query == "query{x}"


class TestErrorMessage:
    """error_message() text selection."""

    def test_invocation_error_unwrapped(self):
        """The user's own exception text is reported."""
        err = FunctionInvocationError("fail", ValueError("boom"))
        assert error_message(err) == "boom"
        assert err.details["error_type"] == "ValueError"

    def test_dagmod_error_without_code(self):
        assert error_message(MissingArgumentError("x")) == "Missing required argument 'x'."

    def test_plain_exception(self):
        assert error_message(RuntimeError("plain")) == "plain"


class TestErrorCodes:
    """ErrorCodes constants."""

    def test_immutable(self):
        codes = ErrorCodes()
        with pytest.raises(AttributeError):
            codes.MISSING_ARGUMENT = "other"

    @pytest.mark.parametrize(
        ("err", "code"),
        [
            (ObjectNotFoundError("A"), ErrorCodes.OBJECT_NOT_FOUND),
            (FunctionNotFoundError("A", "b"), ErrorCodes.FUNCTION_NOT_FOUND),
            (FunctionInvocationError("f", KeyError("k")), ErrorCodes.FUNCTION_INVOCATION_ERROR),
            (ConfigNotFoundError("x"), ErrorCodes.CONFIG_NOT_FOUND),
        ],
    )
    def test_codes_match(self, err, code):
        assert err.code == code

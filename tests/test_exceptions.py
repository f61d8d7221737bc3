"""Tests for essh exception hierarchy."""

import pytest

from essh.exceptions import (
    CallbackError,
    ConfigError,
    CycleError,
    EsshError,
    LoaderError,
    ScriptError,
    ValidationError,
)


class TestEsshError:
    """Tests for base EsshError class."""

    def test_message_attribute(self):
        """EsshError stores message as attribute."""
        assert EsshError("test message").message == "test message"

    def test_default_exit_code(self):
        """EsshError has default exit code of 1."""
        assert EsshError("test").exit_code == 1

    def test_custom_exit_code(self):
        """EsshError accepts custom exit code."""
        assert EsshError("test", exit_code=2).exit_code == 2

    def test_str_representation(self):
        """String representation is the message."""
        assert str(EsshError("test message")) == "test message"


class TestSubclasses:
    """Tests for the specific error types."""

    @pytest.mark.parametrize(
        "cls",
        [ConfigError, ValidationError, ScriptError, CallbackError, LoaderError],
    )
    def test_can_catch_as_essh_error(self, cls):
        """Every error can be caught as EsshError."""
        with pytest.raises(EsshError):
            raise cls("problem")

    def test_cycle_error_is_loader_error(self):
        """CycleError is a LoaderError."""
        assert isinstance(CycleError(["a", "a"]), LoaderError)

    def test_cycle_error_message(self):
        """CycleError names the whole chain."""
        err = CycleError(["a", "b", "c", "a"])
        assert err.chain == ["a", "b", "c", "a"]
        assert err.message == "cyclic module require: a -> b -> c -> a"

"""Tests for the exception hierarchy."""

import pytest

from stratwire.exceptions import (
    ConfigError,
    ConfigurationError,
    DomainError,
    ErrorCategory,
    MalformedArguments,
    StratwireError,
    TransportError,
)


@pytest.mark.parametrize("cls,module,category", [
    (TransportError, "transport", ErrorCategory.TRANSIENT),
    (MalformedArguments, "commands", ErrorCategory.PERMANENT),
    (DomainError, "strategy", ErrorCategory.PERMANENT),
    (ConfigurationError, "config", ErrorCategory.INFRASTRUCTURE),
])
def test_defaults(cls, module, category):
    err = cls("boom")
    assert isinstance(err, StratwireError)
    assert err.module == module
    assert err.category is category


def test_only_transport_errors_are_retryable_by_default():
    assert TransportError("x").is_retryable
    assert not DomainError("x").is_retryable


def test_str_includes_module_and_context():
    err = DomainError("order rejected", symbol="ETHUSDT")
    assert str(err) == "order rejected [module=strategy] (symbol=ETHUSDT)"


def test_repr():
    assert repr(TransportError("down")) == (
        "TransportError('down', category='transient', module='transport')"
    )


def test_attributes():
    assert TransportError("x", chat_id="9").chat_id == "9"
    err = MalformedArguments("bad", command="/notifications", usage="/notifications <level>")
    assert err.command == "/notifications"
    assert err.usage == "/notifications <level>"
    assert ConfigurationError("x", setting_name="chat_id").setting_name == "chat_id"


def test_config_error_alias():
    assert ConfigError is ConfigurationError

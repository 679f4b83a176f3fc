"""Unit tests for error types."""

from inputactions_env.errors import (
    AdapterError,
    EngineSetupError,
    EnvironmentDaemonError,
    ErrorCode,
    UnknownAdapterError,
    UnknownAttributeError,
)


def test_to_dict_includes_suggestion_and_context():
    error = AdapterError("get_tree", "broken pipe")
    data = error.to_dict()
    assert data["code"] == ErrorCode.ADAPTER_QUERY_FAILED.value
    assert data["message"] == "Window manager get_tree failed: broken pipe"
    assert "suggestion" in data
    assert data["context"] == {"operation": "get_tree", "reason": "broken pipe"}


def test_to_dict_omits_empty_fields():
    error = EnvironmentDaemonError(ErrorCode.INVALID_CONFIG, "bad")
    assert error.to_dict() == {"code": 1101, "message": "bad"}


def test_unknown_attribute_is_key_error():
    error = UnknownAttributeError("window_color")
    assert isinstance(error, KeyError)
    assert error.code == ErrorCode.UNKNOWN_ATTRIBUTE
    assert "window_color" in str(error)


def test_engine_setup_error_records_step_and_cause():
    error = EngineSetupError("bus connect", RuntimeError("no bus"))
    assert error.context == {"step": "bus connect", "cause": "RuntimeError"}
    assert "bus connect" in str(error)


def test_unknown_adapter_error():
    error = UnknownAdapterError("kwin")
    assert error.code == ErrorCode.UNKNOWN_ADAPTER
    assert "kwin" in str(error)

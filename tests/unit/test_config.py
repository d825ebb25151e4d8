"""Unit tests for listener configuration."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from pydantic import ValidationError

from delimtrace.config import EnvAttributes, ListenerConfig
from delimtrace.events import TraceEventType, TraceOptions
from delimtrace.exceptions import ConfigError
from delimtrace.sinks import StreamSink


def test_default_config() -> None:
    config = ListenerConfig()

    assert config.delimiter is None
    assert config.options() == TraceOptions.NONE
    assert config.attributes == {}
    assert config.output is None


def test_yaml_round_trip(tmp_path: Path) -> None:
    """Config saved to YAML loads back unchanged."""
    config = ListenerConfig(
        name="audit",
        delimiter="|",
        trace_output_options=["process_id", "callstack"],
        output=tmp_path / "trace.csv",
    )
    path = tmp_path / "listener.yaml"
    config.save(path)

    loaded = ListenerConfig.load(path)

    assert loaded == config
    assert loaded.options() == TraceOptions.PROCESS_ID | TraceOptions.CALLSTACK


def test_from_yaml_attributes() -> None:
    config = ListenerConfig.from_yaml("attributes:\n  delimiter: ','\n")

    assert config.attributes == {"delimiter": ","}


def test_empty_yaml_is_default() -> None:
    assert ListenerConfig.from_yaml("") == ListenerConfig()


def test_invalid_yaml() -> None:
    with pytest.raises(ConfigError, match="Invalid YAML"):
        ListenerConfig.from_yaml("delimiter: [unclosed")


def test_yaml_must_be_mapping() -> None:
    with pytest.raises(ConfigError, match="mapping"):
        ListenerConfig.from_yaml("- just\n- a list\n")


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        ListenerConfig.load(tmp_path / "missing.yaml")


def test_load_reports_path(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("42\n")

    with pytest.raises(ConfigError) as exc_info:
        ListenerConfig.load(path)

    assert exc_info.value.config_path == path


def test_empty_delimiter_rejected() -> None:
    with pytest.raises(ValidationError):
        ListenerConfig(delimiter="")


def test_unknown_option_rejected() -> None:
    with pytest.raises(ValidationError, match="Unknown trace option"):
        ListenerConfig(trace_output_options=["hostname"])


def test_unknown_attribute_rejected() -> None:
    with pytest.raises(ValidationError, match="Unsupported listener attributes"):
        ListenerConfig(attributes={"delimiter": ";", "indent": "2"})


class TestBuildListener:
    """Tests for ListenerConfig.build_listener."""

    def test_explicit_delimiter(self) -> None:
        buffer = io.StringIO()
        config = ListenerConfig(delimiter=",", attributes={"delimiter": "|"})

        listener = config.build_listener(StreamSink(buffer))
        listener.trace_data_many(None, "App", TraceEventType.INFORMATION, 1, ["a", "b"])

        assert listener.delimiter == ","
        assert buffer.getvalue() == '"App",Information,1,,"a";"b",,,,,,\n'

    def test_delimiter_from_attributes(self) -> None:
        config = ListenerConfig(attributes={"delimiter": "|"})

        listener = config.build_listener(StreamSink(io.StringIO()))

        assert listener.delimiter == "|"

    def test_options_and_name(self) -> None:
        config = ListenerConfig(name="audit", trace_output_options=["thread_id"])

        listener = config.build_listener(StreamSink(io.StringIO()))

        assert listener.name == "audit"
        assert listener.trace_output_options == TraceOptions.THREAD_ID


class TestEnvAttributes:
    """Tests for EnvAttributes."""

    def test_reads_delimiter(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DELIMTRACE_DELIMITER", "|")

        assert EnvAttributes().as_attributes() == {"delimiter": "|"}

    def test_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DELIMTRACE_DELIMITER", raising=False)

        assert EnvAttributes().as_attributes() == {}

    def test_empty_value_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DELIMTRACE_DELIMITER", "")

        assert EnvAttributes().as_attributes() == {}

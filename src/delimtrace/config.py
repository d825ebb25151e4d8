"""Configuration schema for delimited trace listeners."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from delimtrace.events import TraceOptions
from delimtrace.exceptions import ConfigError
from delimtrace.listener import DELIMITER_KEY, DelimitedListTraceListener

if TYPE_CHECKING:
    from delimtrace.filters import TraceFilter
    from delimtrace.sinks import TextSink

SUPPORTED_ATTRIBUTES = frozenset({DELIMITER_KEY})


class EnvAttributes(BaseSettings):
    """Listener attributes taken from the environment.

    Environment variables:
        DELIMTRACE_DELIMITER: Field delimiter for delimited listeners.
    """

    delimiter: str | None = Field(
        default=None,
        validation_alias="DELIMTRACE_DELIMITER",
        description="Field delimiter",
    )

    model_config = {
        "env_prefix": "",
        "extra": "ignore",
    }

    def as_attributes(self) -> dict[str, str]:
        """Return the attributes that are set, keyed by attribute name."""
        attributes: dict[str, str] = {}
        if self.delimiter:
            attributes[DELIMITER_KEY] = self.delimiter
        return attributes


class ListenerConfig(BaseModel):
    """Complete listener configuration.

    Attributes:
        name: Listener name used in log output.
        delimiter: Explicit field delimiter. Takes precedence over attributes.
        trace_output_options: Names of the context fields to write,
            e.g. ``["process_id", "thread_id"]``.
        attributes: Lazily consulted attributes (only ``delimiter`` is known).
        output: File to append records to; None means standard output.

    Example:
        >>> config = ListenerConfig(delimiter="|", trace_output_options=["thread_id"])
        >>> config.options()
        <TraceOptions.THREAD_ID: 16>
    """

    name: str = ""
    delimiter: str | None = Field(default=None, min_length=1)
    trace_output_options: list[str] = Field(default_factory=list)
    attributes: dict[str, str] = Field(default_factory=dict)
    output: Path | None = None

    @field_validator("trace_output_options")
    @classmethod
    def validate_option_names(cls, v: list[str]) -> list[str]:
        """Ensure every option name is a known TraceOptions member."""
        TraceOptions.from_names(v)
        return v

    @field_validator("attributes")
    @classmethod
    def validate_attribute_keys(cls, v: dict[str, str]) -> dict[str, str]:
        """Reject attributes the listener does not understand."""
        unknown = sorted(set(v) - SUPPORTED_ATTRIBUTES)
        if unknown:
            msg = f"Unsupported listener attributes: {', '.join(unknown)}"
            raise ValueError(msg)
        return v

    def options(self) -> TraceOptions:
        """Combined TraceOptions flag for the configured names."""
        return TraceOptions.from_names(self.trace_output_options)

    def build_listener(
        self,
        sink: TextSink,
        *,
        filter: TraceFilter | None = None,
    ) -> DelimitedListTraceListener:
        """Create a listener writing to ``sink`` with this configuration.

        Args:
            sink: Destination for the records.
            filter: Optional event filter.

        Returns:
            A configured DelimitedListTraceListener.
        """
        listener = DelimitedListTraceListener(
            sink,
            self.name,
            filter=filter,
            trace_output_options=self.options(),
            attributes=dict(self.attributes),
        )
        if self.delimiter is not None:
            listener.delimiter = self.delimiter
        return listener

    def to_yaml(self) -> str:
        """Serialize the config to YAML.

        Returns:
            YAML string representation.
        """
        data = self.model_dump(mode="json")
        return yaml.dump(data, default_flow_style=False, sort_keys=False)

    def save(self, path: Path) -> None:
        """Save the config to a YAML file.

        Args:
            path: Path to save the file.
        """
        path.write_text(self.to_yaml())

    @classmethod
    def from_yaml(cls, yaml_content: str) -> ListenerConfig:
        """Parse config from YAML content.

        Args:
            yaml_content: YAML string to parse.

        Returns:
            Parsed ListenerConfig instance.

        Raises:
            ConfigError: If the YAML is invalid or not a mapping.
            pydantic.ValidationError: If a field value is invalid.
        """
        try:
            data: Any = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            msg = f"Invalid YAML: {e}"
            raise ConfigError(msg) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            msg = "Config YAML must be a mapping"
            raise ConfigError(msg)

        return cls.model_validate(data)

    @classmethod
    def load(cls, path: Path) -> ListenerConfig:
        """Load config from a YAML file.

        Args:
            path: Path to the YAML file.

        Returns:
            Parsed ListenerConfig instance.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ConfigError: If the YAML is invalid.
        """
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        try:
            return cls.from_yaml(path.read_text())
        except ConfigError as e:
            raise ConfigError(str(e), config_path=path) from e

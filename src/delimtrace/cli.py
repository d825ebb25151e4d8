"""CLI interface for delimtrace."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import structlog
import typer
from pydantic import ValidationError

from delimtrace import __version__
from delimtrace.config import EnvAttributes, ListenerConfig
from delimtrace.escaping import escape_field
from delimtrace.events import TraceEventCache, TraceEventType, TraceOptions
from delimtrace.exceptions import DelimTraceError
from delimtrace.listener import DelimitedListTraceListener
from delimtrace.sinks import FileSink, StreamSink, TextSink

# Log to stderr so records on stdout stay machine-readable
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)

logger = structlog.get_logger()

app = typer.Typer(
    name="delimtrace",
    help="Write trace events as delimited text records",
    no_args_is_help=True,
)

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to a listener YAML config file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
]
OutputOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Append records to this file instead of stdout",
    ),
]
DelimiterOption = Annotated[
    str | None,
    typer.Option("--delimiter", "-d", help="Field delimiter (default ';')"),
]
EventTypeOption = Annotated[
    TraceEventType,
    typer.Option("--type", "-t", help="Event type", case_sensitive=False),
]
IdOption = Annotated[int, typer.Option("--id", help="Numeric event id")]
TraceOptionsOption = Annotated[
    list[str] | None,
    typer.Option(
        "--option",
        help="Context field to include (process_id, thread_id, ...). Repeatable.",
    ),
]
ContextOption = Annotated[
    bool,
    typer.Option("--context", help="Attach a snapshot of the current context"),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"delimtrace version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """delimtrace - delimited trace record writer."""
    pass


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(code=1)


def _build_listener(
    config_path: Path | None,
    output: Path | None,
    delimiter: str | None,
    option_names: list[str] | None,
) -> DelimitedListTraceListener:
    """Assemble a listener from config file, environment and CLI flags."""
    try:
        config = ListenerConfig.load(config_path) if config_path else ListenerConfig()
        # Explicit config attributes win over the environment
        attributes = {**EnvAttributes().as_attributes(), **config.attributes}
        options = config.options()
        if option_names:
            options |= TraceOptions.from_names(option_names)
    except (DelimTraceError, ValidationError, ValueError, FileNotFoundError) as e:
        raise _fail(str(e)) from e

    target = output or config.output
    sink: TextSink = FileSink(target) if target else StreamSink(sys.stdout)

    listener = DelimitedListTraceListener(
        sink,
        config.name,
        trace_output_options=options,
        attributes=attributes,
    )
    try:
        if config.delimiter is not None:
            listener.delimiter = config.delimiter
        if delimiter is not None:
            listener.delimiter = delimiter
    except DelimTraceError as e:
        raise _fail(str(e)) from e

    logger.debug(
        "Listener ready",
        delimiter=listener.delimiter,
        output=str(target) if target else "stdout",
    )
    return listener


@app.command()
def event(
    source: Annotated[str, typer.Argument(help="Name of the emitting component")],
    message: Annotated[str, typer.Argument(help="Message text")],
    event_type: EventTypeOption = TraceEventType.INFORMATION,
    id: IdOption = 0,
    delimiter: DelimiterOption = None,
    config: ConfigOption = None,
    output: OutputOption = None,
    option: TraceOptionsOption = None,
    context: ContextOption = False,
) -> None:
    """Write one message record."""
    listener = _build_listener(config, output, delimiter, option)
    cache = TraceEventCache.capture() if context else None
    with listener:
        listener.trace_event(cache, source, event_type, id, message)


@app.command()
def data(
    source: Annotated[str, typer.Argument(help="Name of the emitting component")],
    items: Annotated[list[str], typer.Argument(help="Data values")],
    event_type: EventTypeOption = TraceEventType.INFORMATION,
    id: IdOption = 0,
    delimiter: DelimiterOption = None,
    config: ConfigOption = None,
    output: OutputOption = None,
    option: TraceOptionsOption = None,
    context: ContextOption = False,
) -> None:
    """Write one data record; several items share one field."""
    listener = _build_listener(config, output, delimiter, option)
    cache = TraceEventCache.capture() if context else None
    with listener:
        if len(items) == 1:
            listener.trace_data(cache, source, event_type, id, items[0])
        else:
            listener.trace_data_many(cache, source, event_type, id, items)


@app.command()
def escape(
    text: Annotated[str, typer.Argument(help="Field content to quote")],
) -> None:
    """Print TEXT as a quoted field."""
    typer.echo(escape_field(text))


if __name__ == "__main__":
    app()

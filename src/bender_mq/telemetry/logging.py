import logging
import logging.config
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Union

from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import (
    BatchLogRecordProcessor,
    ConsoleLogExporter,
    SimpleLogRecordProcessor,
)
from opentelemetry.sdk.resources import Resource
from pydantic import BaseModel, Field, model_validator

from ._resource import _inject_otel_resource_attributes, _process_metadata

# ============================================================
# Pydantic CONFIG OBJECTS
# ============================================================

Level = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogFormatter(BaseModel):
    name: str = "default"
    fmt: str = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"


class LogFilter(BaseModel):
    name: str  # filter name in dictConfig
    filter: Any  # class inheriting from logging.Filter
    config: Dict[str, Any] = Field(default_factory=dict)


class BaseLogHandler(BaseModel):
    level: Level = "INFO"
    formatter: str = "default"
    filters: List[str] = Field(default_factory=list)  # MUST be names


class ConsoleLogHandler(BaseLogHandler):
    type: Literal["console"] = "console"
    stream: Literal["stdout", "stderr"] = "stderr"


class FileLogHandler(BaseLogHandler):
    type: Literal["file"] = "file"
    filename: str
    mode: Literal["a", "w"] = "a"


class RotatingFileLogHandler(BaseLogHandler):
    type: Literal["rotating_file"] = "rotating_file"
    filename: str
    max_bytes: int = 10_000_000
    backup_count: int = 5


class JSONLogHandler(BaseLogHandler):
    type: Literal["json"] = "json"
    formatter: str = "json"
    filename: str | None = None
    mode: Literal["a", "w"] = "a"


class ExporterConfig(BaseModel):
    """
    Lazy exporter instantiation: gRPC channels cannot be pickled, so worker
    processes build their own exporter from this description.
    """

    exporter: Any  # Exporter class (e.g., OTLPLogExporter)
    args: Dict[str, Any] = Field(default_factory=dict)


class LogProcessor(BaseModel):
    processor: Any
    config: Dict[str, Any] = Field(default_factory=dict)
    exporters: List[Any] = Field(default_factory=list)


class OTLPLogHandler(BaseLogHandler):
    type: Literal["otlp"] = "otlp"
    resource: Dict[str, Any] = Field(default_factory=dict)
    processors: List[LogProcessor] = Field(default_factory=list)

    @model_validator(mode="after")
    def confirm_processors(self):
        if not self.processors:
            raise ValueError("OTLPLogHandler requires at least one processor.")
        return self


LogHandlers = Annotated[
    Union[
        ConsoleLogHandler,
        FileLogHandler,
        RotatingFileLogHandler,
        JSONLogHandler,
        OTLPLogHandler,
    ],
    Field(discriminator="type"),
]


class LoggingConfig(BaseModel):
    level: Level = "INFO"
    handlers: List[LogHandlers] = Field(default_factory=lambda: [ConsoleLogHandler()])
    filters: List[LogFilter] = Field(default_factory=list)
    formatters: List[LogFormatter] = Field(default_factory=list)


# ============================================================
# Handler builders
# ============================================================


def _default_formatter_dict():
    return {
        "format": "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
        "datefmt": "%Y-%m-%d %H:%M:%S",
    }


def _resolve_filename(cfg, metadata: dict) -> str:
    final = cfg.filename.format(
        service=metadata["service_name"],
        pid=metadata["pid"],
        timestamp=datetime.now().strftime("%Y-%m-%d_%H-%M-%S"),
    )
    Path(final).parent.mkdir(parents=True, exist_ok=True)
    return final


def _build_console_handler_dict(cfg: ConsoleLogHandler, metadata: dict):
    return {
        "class": "logging.StreamHandler",
        "level": cfg.level,
        "formatter": cfg.formatter,
        "stream": "ext://sys.stdout" if cfg.stream == "stdout" else "ext://sys.stderr",
        "filters": cfg.filters,
    }


def _build_file_handler_dict(cfg: FileLogHandler, metadata: dict):
    return {
        "class": "logging.FileHandler",
        "level": cfg.level,
        "formatter": cfg.formatter,
        "filename": _resolve_filename(cfg, metadata),
        "mode": cfg.mode,
        "encoding": "utf-8",
        "filters": cfg.filters,
    }


def _build_rotating_handler_dict(cfg: RotatingFileLogHandler, metadata: dict):
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": cfg.level,
        "formatter": cfg.formatter,
        "filename": _resolve_filename(cfg, metadata),
        "maxBytes": cfg.max_bytes,
        "backupCount": cfg.backup_count,
        "encoding": "utf-8",
        "filters": cfg.filters,
    }


def _build_json_handler_dict(cfg: JSONLogHandler, metadata: dict):
    if cfg.filename:
        handler_args = {
            "class": "logging.FileHandler",
            "filename": _resolve_filename(cfg, metadata),
            "mode": cfg.mode,
            "encoding": "utf-8",
        }
    else:
        handler_args = {"class": "logging.StreamHandler", "stream": "ext://sys.stdout"}

    return {
        "level": cfg.level,
        "formatter": cfg.formatter,
        "filters": cfg.filters,
        **handler_args,
    }


def _build_otlp_handler_dict(cfg: OTLPLogHandler, metadata: dict):
    resource = Resource(attributes=_inject_otel_resource_attributes(resource=cfg.resource, metadata=metadata))
    provider = LoggerProvider(resource=resource)

    for p in cfg.processors:
        for exporter in p.exporters:
            if isinstance(exporter, ExporterConfig):
                exporter = exporter.exporter(**exporter.args)
            provider.add_log_record_processor(p.processor(exporter, **p.config))

    set_logger_provider(provider)

    return {
        "class": "opentelemetry.sdk._logs.LoggingHandler",
        "level": cfg.level,
        "formatter": cfg.formatter,
        "filters": cfg.filters,
    }


_LOG_HANDLER_BUILDERS_DICT = {
    "console": _build_console_handler_dict,
    "file": _build_file_handler_dict,
    "rotating_file": _build_rotating_handler_dict,
    "json": _build_json_handler_dict,
    "otlp": _build_otlp_handler_dict,
}

# ============================================================
# Apply entire LoggingConfig to dictConfig
# ============================================================

_LOGGING_CONFIGURED = False


def build_logging_dict(cfg: LoggingConfig, metadata: dict) -> dict:
    formatters = {f.name: {"format": f.fmt, "datefmt": f.datefmt} for f in cfg.formatters}
    formatters.setdefault("default", _default_formatter_dict())
    formatters["json"] = {
        "()": "pythonjsonlogger.json.JsonFormatter",
        "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
    }

    filters = {f.name: {"()": f.filter, **f.config} for f in cfg.filters}

    handlers_dict = {}
    for idx, handler_cfg in enumerate(cfg.handlers):
        builder = _LOG_HANDLER_BUILDERS_DICT[handler_cfg.type]
        handlers_dict[f"handler_{idx}"] = builder(handler_cfg, metadata)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers_dict,
        "root": {"level": cfg.level, "handlers": list(handlers_dict)},
    }


def configure_logging(cfg: LoggingConfig | None = None, service_name: str = "bender-mq") -> None:
    """
    Install the process-wide logging setup. Only the first call has an effect;
    a library should leave this to the service embedding it.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    cfg = cfg or LoggingConfig()
    logging.config.dictConfig(build_logging_dict(cfg, _process_metadata(service_name)))
    _LOGGING_CONFIGURED = True


__all__ = [
    "OTLPLogExporter",
    "BatchLogRecordProcessor",
    "ConsoleLogExporter",
    "SimpleLogRecordProcessor",
    "ExporterConfig",
    "LogFormatter",
    "LogFilter",
    "ConsoleLogHandler",
    "FileLogHandler",
    "RotatingFileLogHandler",
    "JSONLogHandler",
    "OTLPLogHandler",
    "LogProcessor",
    "LoggingConfig",
    "build_logging_dict",
    "configure_logging",
]

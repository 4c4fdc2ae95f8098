import logging
import os
import tomllib
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigException, mask_url
from .utils import load_env

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "BENDER_CONFIG"
URL_ENV_VAR = "RABBITMQ_URL"
DEFAULT_CONFIG_PATH = Path("~/.config/bender/config.toml")

AMQP_SCHEMES = ("amqp", "amqps")


class RabbitmqConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str = Field(description="AMQP URL of the broker, e.g. amqp://localhost/%2F")

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        value = value.strip()
        scheme = urlsplit(value).scheme
        if scheme not in AMQP_SCHEMES:
            raise ValueError(f"url must use one of {AMQP_SCHEMES}, got {scheme or 'no scheme'!r}")
        return value


class BenderConfig(BaseModel):
    """
    Process configuration consumed by bender_mq. Only the `[rabbitmq]` table
    is read; other tables in the same file belong to other services.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    rabbitmq: RabbitmqConfig

    @classmethod
    def from_url(cls, url: str) -> "BenderConfig":
        try:
            return cls(rabbitmq=RabbitmqConfig(url=url))
        except ValidationError as exc:
            raise ConfigException(f"Invalid broker URL {mask_url(url)}: {_describe(exc)}") from exc

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "BenderConfig":
        path = Path(path).expanduser()
        try:
            with path.open("rb") as fh:
                data = tomllib.load(fh)
        except OSError as exc:
            raise ConfigException(f"Could not read config file {path}: {exc}", path=str(path)) from exc
        except tomllib.TOMLDecodeError as exc:
            raise ConfigException(f"Could not parse config file {path}: {exc}", path=str(path)) from exc

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigException(f"Invalid config file {path}: {_describe(exc)}", path=str(path)) from exc


def _describe(exc: ValidationError) -> str:
    # input values are left out, they may carry broker credentials
    return "; ".join(f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors())


def config_location() -> Path:
    return Path(os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH).expanduser()


def load_config(path: Optional[Union[str, Path]] = None) -> BenderConfig:
    """
    Resolve the broker configuration.

    Order: explicit `path`, then the file named by BENDER_CONFIG, then
    ~/.config/bender/config.toml. When that file does not exist, RABBITMQ_URL
    from the environment (or the env file) is used instead.

    Raises:
        ConfigException: nothing usable was found, or what was found is invalid.
    """
    load_env()

    location = Path(path).expanduser() if path is not None else config_location()

    if location.exists():
        logger.info(f"Loading messaging config from {location}")
        return BenderConfig.from_file(location)

    url = os.environ.get(URL_ENV_VAR)
    if url:
        logger.info(f"Config file {location} not found; using {URL_ENV_VAR} from the environment")
        return BenderConfig.from_url(url)

    raise ConfigException(
        f"No config file at {location} and {URL_ENV_VAR} is not set.",
        path=str(location),
    )

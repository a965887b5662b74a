import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from mashumaro.exceptions import MissingField, InvalidFieldValue
from mashumaro.mixins.toml import DataClassTOMLMixin

from .errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class MirrorConfig:
    output_dir: str = field(default=".")
    workers: int = field(default=8)
    api_url: str = field(default="https://api.github.com")
    per_page: int = field(default=100)
    set_credential: bool = field(default=False)
    credential_host: str = field(default="github.com")


@dataclass
class Config(DataClassTOMLMixin):
    mirror: MirrorConfig = field(default_factory=MirrorConfig)


CONFIG_FILE_PATH = Path("ghmirror.toml")
TOKEN_ENV = "GITHUB_TOKEN"


def load_config(cfg_path: Path = CONFIG_FILE_PATH) -> Config:
    if not cfg_path.exists():
        logger.info(f"not found {cfg_path}, use default config")
        return Config()

    content = cfg_path.read_text(encoding="utf-8")
    logger.info(f"use config from {cfg_path}")
    try:
        config = Config.from_toml(content)
    except (ValueError, MissingField, InvalidFieldValue) as e:
        # tomllib.TOMLDecodeError is a ValueError too
        raise ConfigError(f"invalid config {cfg_path}: {e}") from e
    logger.debug(f"{config=}")

    validate(config.mirror)
    return config


def validate(config: MirrorConfig):
    # mashumaro passes scalars through as they are in the file
    for name in ("workers", "per_page"):
        value = getattr(config, name)
        if not isinstance(value, int) or isinstance(value, bool):
            raise ConfigError(f"{name} must be an integer, got {value!r}")
        if value < 1:
            raise ConfigError(f"{name} must be at least 1, got {value}")
    if not isinstance(config.set_credential, bool):
        raise ConfigError(
            f"set_credential must be true or false, got {config.set_credential!r}"
        )


# the token never lives in the config file
def load_token() -> str:
    token = os.environ.get(TOKEN_ENV, "")
    if not token:
        raise ConfigError(f"{TOKEN_ENV} is not set")
    return token

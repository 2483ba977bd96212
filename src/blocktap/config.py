import logging
import os
import tomllib
from pathlib import Path
from typing import Annotated, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, SecretStr, ValidationError

import blocktap.constants as C
from blocktap.errors import ConfigError

log = logging.getLogger("blocktap.config")

Commitment = Literal["processed", "confirmed", "finalized"]
Lamports = Annotated[int, Field(ge=0, le=C.MAX_LAMPORTS)]


class _Config(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class BalanceConfig(_Config):
    rpc_url: str
    wallets: list[str]
    commitment: Commitment = C.DEFAULT_COMMITMENT
    max_concurrency: PositiveInt | None = None


class TransferEntry(_Config):
    secret_key: SecretStr
    to: str
    amount: Lamports


class TransferConfig(_Config):
    rpc_url: str
    transfers: list[TransferEntry]
    commitment: Commitment = C.DEFAULT_COMMITMENT
    max_concurrency: PositiveInt | None = None


class WalletConfig(_Config):
    rpc_url: str
    secret_key: SecretStr
    to: str
    amount: Lamports


class GeyserConfig(_Config):
    url: str
    token: SecretStr


class RelayConfig(_Config):
    wallet: WalletConfig
    geyser: GeyserConfig
    commitment: Commitment = C.DEFAULT_COMMITMENT


ConfigT = TypeVar("ConfigT", bound=_Config)


def config_path(path: str | os.PathLike | None = None) -> Path:
    """Explicit path, else $BLOCKTAP_CONFIG, else ./config.toml."""
    if path is None:
        path = os.getenv(C.CONFIG_ENV_VAR, C.DEFAULT_CONFIG_PATH)
    return Path(path)


def load_config(model: type[ConfigT], path: str | os.PathLike | None = None) -> ConfigT:
    """Read a TOML file and validate it against ``model``.

    Raises:
        ConfigError: the file is missing, is not valid TOML, or fails validation.
    """
    config_file = config_path(path)
    try:
        raw = tomllib.loads(config_file.read_text())
    except OSError as e:
        raise ConfigError(f"cannot read config {config_file}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"malformed TOML in {config_file}: {e}") from e

    try:
        cfg = model.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"invalid {model.__name__} in {config_file}:\n{e}") from e

    # SecretStr fields render masked
    log.debug("Loaded %s from %s: %r", model.__name__, config_file, cfg)
    return cfg

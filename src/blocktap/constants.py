from typing import Final
from enum import StrEnum

LAMPORTS_PER_SOL: Final = 1_000_000_000
UNIT: Final = "SOL"
MAX_LAMPORTS: Final = 2**64 - 1

DEFAULT_CONFIG_PATH: Final = "config.toml"
CONFIG_ENV_VAR: Final = "BLOCKTAP_CONFIG"
DEFAULT_COMMITMENT: Final = "confirmed"

# Geyser block stream
STREAM_COMMITMENT: Final = "finalized"
STREAM_TOKEN_HEADER: Final = "x-token"
SUBSCRIBE_ACK_TIMEOUT = 10.0
CONNECT_TIMEOUT = 10.0
PING_INTERVAL = 20
PING_TIMEOUT = 20
CLOSE_TIMEOUT = 1

# RPC startup health check
HEALTH_TIMEOUT = 3.0
HEALTH_RETRIES = 5
HEALTH_RETRY_DELAY = 2.0

CONFIRM_SLEEP = 0.5


class StreamState(StrEnum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING   = "CONNECTING"
    SUBSCRIBED   = "SUBSCRIBED"
    STREAMING    = "STREAMING"
    CLOSED       = "CLOSED"
    ERRORED      = "ERRORED"


TERMINAL_STREAM_STATES = {StreamState.CLOSED, StreamState.ERRORED}

__all__ = [
    "CLOSE_TIMEOUT",
    "CONFIG_ENV_VAR",
    "CONFIRM_SLEEP",
    "CONNECT_TIMEOUT",
    "DEFAULT_COMMITMENT",
    "DEFAULT_CONFIG_PATH",
    "LAMPORTS_PER_SOL",
    "MAX_LAMPORTS",
    "PING_INTERVAL",
    "PING_TIMEOUT",
    "HEALTH_RETRIES",
    "HEALTH_RETRY_DELAY",
    "HEALTH_TIMEOUT",
    "STREAM_COMMITMENT",
    "STREAM_TOKEN_HEADER",
    "SUBSCRIBE_ACK_TIMEOUT",
    "UNIT",

    ######
    "StreamState",
    "TERMINAL_STREAM_STATES",
]

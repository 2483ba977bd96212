"""Error taxonomy shared by every entry point.

Per-item errors (ParseError, TransportError, FreshnessError, SigningError) are
caught at the unit-of-work boundary and reported. ConfigError and FanoutError
are fatal for the process.
"""


class BlocktapError(Exception):
    """Base class for all errors raised by blocktap."""


class ConfigError(BlocktapError):
    """Configuration file missing, unreadable or invalid."""


class ParseError(BlocktapError, ValueError):
    """Malformed address or key text."""


class TransportError(BlocktapError):
    """Node unreachable, request rejected, or stream broken."""


class FreshnessError(BlocktapError):
    """A recent blockhash could not be obtained."""


class SigningError(BlocktapError):
    """Key material unusable for signing."""


class FanoutError(BlocktapError):
    """Joining a fan-out batch failed."""

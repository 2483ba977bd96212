"""Ledger domain data structures.

Amounts are always lamports. Conversion to SOL happens only for display.
"""

from dataclasses import dataclass
from decimal import Decimal

import base58
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey

import blocktap.constants as C
from blocktap.errors import ParseError, SigningError


def lamports_to_sol(lamports: int) -> float:
    return lamports / C.LAMPORTS_PER_SOL


def format_sol(lamports: int) -> str:
    """Exact SOL text in plain notation, e.g. 42 -> "0.000000042", 10**9 -> "1.0"."""
    text = f"{(Decimal(lamports) / C.LAMPORTS_PER_SOL).normalize():f}"
    return text if "." in text else text + ".0"


@dataclass(frozen=True, slots=True)
class WalletAddress:
    pubkey: Pubkey

    @classmethod
    def parse(cls, text: str) -> "WalletAddress":
        """Parse a base58 account address.

        Raises:
            ParseError: if ``text`` is not a valid 32-byte base58 public key.
        """
        if not isinstance(text, str) or not text.strip():
            raise ParseError(f"invalid wallet address: {text!r}")
        try:
            return cls(Pubkey.from_string(text.strip()))
        except ValueError as e:
            raise ParseError(f"invalid wallet address {text!r}: {e}") from e

    @classmethod
    def of(cls, keypair: Keypair) -> "WalletAddress":
        return cls(keypair.pubkey())

    def __str__(self) -> str:
        return str(self.pubkey)


def parse_signer(secret_key: str) -> Keypair:
    """Build a keypair from a base58 encoded 64-byte secret key.

    Text that is not base58 is a ParseError. Base58 that does not hold a
    usable ed25519 keypair is a SigningError.
    """
    text = secret_key.strip() if isinstance(secret_key, str) else ""
    if not text:
        raise ParseError("empty secret key")
    try:
        raw = base58.b58decode(text)
    except ValueError as e:
        raise ParseError(f"secret key is not base58: {e}") from e
    try:
        return Keypair.from_bytes(raw)
    except (ValueError, TypeError) as e:
        raise SigningError(f"unusable secret key ({len(raw)} bytes): {e}") from e


@dataclass(frozen=True, slots=True)
class Transfer:
    """One transfer of ``amount`` lamports from ``sender`` to ``recipient``."""

    sender: Keypair
    recipient: WalletAddress
    amount: int

    def __post_init__(self):
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise ValueError(f"amount must be an integer number of lamports, got {self.amount!r}")
        if not 0 <= self.amount <= C.MAX_LAMPORTS:
            raise ValueError(f"amount out of range: {self.amount}")

    @property
    def sender_address(self) -> WalletAddress:
        return WalletAddress.of(self.sender)

    @property
    def amount_sol(self) -> float:
        return lamports_to_sol(self.amount)

    def __repr__(self) -> str:
        return f"Transfer({self.sender_address} -> {self.recipient}, {self.amount} lamports)"


@dataclass(frozen=True, slots=True)
class BlockReference:
    """Recent blockhash used as the transaction's freshness anchor."""

    blockhash: Hash
    last_valid_block_height: int


@dataclass(frozen=True, slots=True)
class ChainEvent:
    block_hash: str
    slot: int

    @classmethod
    def from_notification(cls, msg: dict) -> "ChainEvent":
        """Parse a ``blockNotification`` message into a ChainEvent.

        Message structure:
        {
            "method": "blockNotification",
            "params": {
                "result": {
                    "context": {"slot": 12345},
                    "value": {
                        "slot": 12345,
                        "block": {"blockhash": "ABC...", "parentSlot": 12344, ...},
                        "err": null
                    }
                },
                "subscription": 1
            }
        }

        Raises:
            ValueError: if the notification carries an error or no block.
        """
        try:
            value = msg["params"]["result"]["value"]
        except (KeyError, TypeError) as e:
            raise ValueError(f"malformed block notification: missing {e}") from e

        if value.get("err") is not None:
            raise ValueError(f"block notification error at slot {value.get('slot')}: {value['err']}")
        block = value.get("block")
        if not block or not block.get("blockhash"):
            raise ValueError(f"block notification without block at slot {value.get('slot')}")
        return cls(block_hash=block["blockhash"], slot=int(value["slot"]))


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    confirmation: str | None = None
    error: Exception | None = None

    @classmethod
    def success(cls, confirmation: str) -> "SubmissionResult":
        return cls(confirmation=confirmation)

    @classmethod
    def failure(cls, error: Exception) -> "SubmissionResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

import asyncio
import json
import logging

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from blocktap.errors import TransportError
from blocktap.logging_config import QUIET_LIBRARIES
from blocktap.models import BlockReference, Transfer, WalletAddress


def block_notification(slot: int, blockhash: str | None = None, err=None) -> str:
    block = None if err is not None else {
        "blockhash": blockhash or str(Hash.new_unique()),
        "parentSlot": slot - 1,
        "blockHeight": slot,
    }
    return json.dumps({
        "jsonrpc": "2.0",
        "method": "blockNotification",
        "params": {
            "result": {
                "context": {"slot": slot},
                "value": {"slot": slot, "block": block, "err": err},
            },
            "subscription": 7,
        },
    })


SUBSCRIBE_ACK = json.dumps({"jsonrpc": "2.0", "result": 7, "id": 1})


class FakeLedger:
    """In-memory stand-in for SolanaLedger."""

    def __init__(self, balances=None, failing=(), blockhashes=None, freshness_error=None, submit_error=None,
                 down=False):
        self.balances = dict(balances or {})
        self.failing = set(failing)
        self.down = down
        self._blockhashes = list(blockhashes) if blockhashes else None
        self.freshness_error = freshness_error
        self.submit_error = submit_error
        self.submitted = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    async def get_balance(self, address: WalletAddress) -> int:
        if self.down or str(address) in self.failing:
            raise TransportError(f"node refused {address}")
        return self.balances[str(address)]

    async def get_recent_block_reference(self) -> BlockReference:
        if self.freshness_error:
            raise self.freshness_error
        blockhash = self._blockhashes.pop(0) if self._blockhashes else Hash.new_unique()
        return BlockReference(blockhash=blockhash, last_valid_block_height=1_000)

    async def submit_and_confirm(self, transaction, reference=None) -> str:
        self.submitted.append(transaction)
        if self.submit_error:
            raise self.submit_error
        return str(transaction.signatures[0])


class FakeWebSocket:
    def __init__(self, messages=(), ack=SUBSCRIBE_ACK, error=None):
        self.sent = []
        self.closed = 0
        # frames returned by recv() during the handshake, then silence
        self._handshake = [ack] if isinstance(ack, str) else list(ack)
        self._messages = list(messages)
        self._error = error

    async def send(self, data):
        self.sent.append(json.loads(data))

    async def recv(self):
        if self._handshake:
            return self._handshake.pop(0)
        await asyncio.Event().wait()

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for m in self._messages:
            yield m
        if self._error is not None:
            raise self._error

    async def close(self):
        self.closed += 1


def fake_connect(ws: FakeWebSocket, captured: dict | None = None):
    async def _connect(url, **kwargs):
        if captured is not None:
            captured["url"] = url
            captured.update(kwargs)
        return ws
    return _connect


@pytest.fixture
def sender() -> Keypair:
    return Keypair()


@pytest.fixture
def recipient() -> WalletAddress:
    return WalletAddress(Pubkey.new_unique())


@pytest.fixture
def transfer(sender, recipient) -> Transfer:
    return Transfer(sender=sender, recipient=recipient, amount=250_000_000)


@pytest.fixture(autouse=True)
def _restore_logging():
    """Undo setup_logging() so handlers bound to an old stderr do not leak into later tests."""
    yield
    for name in ("blocktap", *QUIET_LIBRARIES):
        logger = logging.getLogger(name)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()

"""Async adapter over the Solana JSON-RPC client.

Translates solana-py failures into the blocktap error taxonomy. A single
SolanaLedger is shared by reference across concurrent fan-out tasks; it holds
no mutable state of its own.
"""
import asyncio
import logging

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import (
    RPCException,
    TransactionExpiredBlockheightExceededError,
    UnconfirmedTxError,
)
from solana.rpc.types import TxOpts
from solders.transaction import Transaction

import blocktap.constants as C
from blocktap.errors import FreshnessError, TransportError
from blocktap.models import BlockReference, WalletAddress

log = logging.getLogger("blocktap.ledger")

_RPC_ERRORS = (SolanaRpcException, RPCException, httpx.HTTPError, OSError)


async def check_rpc_health(
    url: str,
    max_retries: int = C.HEALTH_RETRIES,
    retry_delay: float = C.HEALTH_RETRY_DELAY,
) -> None:
    """Poll the RPC endpoint with getHealth until it answers "ok".

    Raises:
        TransportError: if the node is not healthy after ``max_retries`` attempts.
    """
    payload = {"jsonrpc": "2.0", "id": 1, "method": "getHealth"}
    last_error: str | None = None

    for attempt in range(1, max_retries + 1):
        try:
            async with httpx.AsyncClient(timeout=C.HEALTH_TIMEOUT) as http:
                r = await http.post(url, json=payload)
                r.raise_for_status()
                body = r.json()
            if body.get("result") == "ok":
                log.info("RPC endpoint healthy (attempt %d/%d)", attempt, max_retries)
                return
            last_error = str(body.get("error") or body)
        except (httpx.HTTPError, ValueError) as e:
            last_error = f"{e.__class__.__name__}: {e}"

        if attempt < max_retries:
            log.info("RPC not ready yet (attempt %d/%d): %s - retrying in %ss...",
                     attempt, max_retries, last_error, retry_delay)
            await asyncio.sleep(retry_delay)

    log.error("RPC failed after %d attempts", max_retries)
    raise TransportError(f"RPC endpoint {url} not healthy: {last_error}")


class SolanaLedger:
    """Balance queries, blockhash fetches and submit-and-confirm against one node."""

    def __init__(self, rpc_url: str, commitment: str = C.DEFAULT_COMMITMENT, client: AsyncClient | None = None):
        self.rpc_url = rpc_url
        self.commitment = Commitment(commitment)
        self.client = client or AsyncClient(rpc_url, commitment=self.commitment)

    async def __aenter__(self) -> "SolanaLedger":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.close()

    async def get_balance(self, address: WalletAddress) -> int:
        try:
            resp = await self.client.get_balance(address.pubkey, commitment=self.commitment)
        except _RPC_ERRORS as e:
            raise TransportError(f"get_balance({address}) failed: {e}") from e
        return resp.value

    async def get_recent_block_reference(self) -> BlockReference:
        try:
            resp = await self.client.get_latest_blockhash(commitment=self.commitment)
        except _RPC_ERRORS as e:
            raise FreshnessError(f"could not fetch latest blockhash: {e}") from e
        value = resp.value
        log.debug("Latest blockhash %s (valid until height %s)", value.blockhash, value.last_valid_block_height)
        return BlockReference(blockhash=value.blockhash, last_valid_block_height=value.last_valid_block_height)

    async def submit_and_confirm(self, transaction: Transaction, reference: BlockReference | None = None) -> str:
        """Send a signed transaction and wait once for confirmation.

        The wait is bounded by ``reference.last_valid_block_height`` when given,
        otherwise by solana-py's default timeout.

        Returns:
            The transaction signature as a base58 string.

        Raises:
            TransportError: the node rejected the transaction, was unreachable,
                the confirmation wait ran out, or the transaction failed on chain.
        """
        opts = TxOpts(skip_confirmation=True, preflight_commitment=self.commitment)
        try:
            sent = await self.client.send_raw_transaction(bytes(transaction), opts=opts)
        except _RPC_ERRORS as e:
            raise TransportError(f"send_transaction failed: {e}") from e

        signature = sent.value
        log.debug("Submitted %s, awaiting %s confirmation", signature, self.commitment)
        try:
            confirmed = await self.client.confirm_transaction(
                signature,
                self.commitment,
                sleep_seconds=C.CONFIRM_SLEEP,
                last_valid_block_height=reference.last_valid_block_height if reference else None,
            )
        except (UnconfirmedTxError, TransactionExpiredBlockheightExceededError) as e:
            raise TransportError(f"transaction {signature} not confirmed: {e}") from e
        except _RPC_ERRORS as e:
            raise TransportError(f"confirm_transaction({signature}) failed: {e}") from e

        status = confirmed.value[0] if confirmed.value else None
        if status is not None and status.err is not None:
            raise TransportError(f"transaction {signature} failed: {status.err}")
        return str(signature)

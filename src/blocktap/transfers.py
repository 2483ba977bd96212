import logging
from collections.abc import Sequence

from blocktap import report
from blocktap.config import TransferConfig, TransferEntry
from blocktap.errors import ParseError, SigningError, TransportError
from blocktap.fanout import Outcome, fan_out
from blocktap.ledger import SolanaLedger, check_rpc_health
from blocktap.models import Transfer, WalletAddress, parse_signer
from blocktap.submitter import TransactionSubmitter

log = logging.getLogger("blocktap.transfers")

UNKNOWN_SENDER = "<unparsed sender>"


def transfer_from_entry(entry: TransferEntry) -> Transfer:
    """Raises ParseError or SigningError for malformed key or address text."""
    return Transfer(
        sender=parse_signer(entry.secret_key.get_secret_value()),
        recipient=WalletAddress.parse(entry.to),
        amount=entry.amount,
    )


def _sender_of(entry: TransferEntry) -> str:
    try:
        return str(WalletAddress.of(parse_signer(entry.secret_key.get_secret_value())))
    except (ParseError, SigningError):
        return UNKNOWN_SENDER


async def execute_transfers(
    ledger: SolanaLedger,
    entries: Sequence[TransferEntry],
    *,
    max_concurrency: int | None = None,
) -> list[Outcome[TransferEntry, tuple[Transfer, str]]]:
    """Submit every configured transfer concurrently, one result line per transfer."""
    submitter = TransactionSubmitter(ledger)

    async def _one(entry: TransferEntry) -> tuple[Transfer, str]:
        # parsed inside the unit so a bad entry only fails itself
        t = transfer_from_entry(entry)
        return t, await submitter.submit(t)

    def _report(outcome: Outcome[TransferEntry, tuple[Transfer, str]]) -> None:
        entry = outcome.item
        if outcome.ok:
            report.transfer_success(*outcome.value)
        else:
            report.transfer_failure(entry.amount, _sender_of(entry), entry.to, outcome.error)

    return await fan_out(entries, _one, _report, max_concurrency=max_concurrency)


async def run_transfers(cfg: TransferConfig) -> list[Outcome[TransferEntry, tuple[Transfer, str]]]:
    log.debug("Transfer config: %r", cfg)
    try:
        await check_rpc_health(cfg.rpc_url, max_retries=1)
    except TransportError as e:
        log.warning("RPC health check failed, submitting anyway: %s", e)
    log.info("Executing %d transfers via %s", len(cfg.transfers), cfg.rpc_url)
    async with SolanaLedger(cfg.rpc_url, cfg.commitment) as ledger:
        return await execute_transfers(ledger, cfg.transfers, max_concurrency=cfg.max_concurrency)

import logging
from collections.abc import Sequence

from blocktap import report
from blocktap.config import BalanceConfig
from blocktap.errors import TransportError
from blocktap.fanout import Outcome, fan_out
from blocktap.ledger import SolanaLedger, check_rpc_health
from blocktap.models import WalletAddress

log = logging.getLogger("blocktap.balances")


def _report(outcome: Outcome[str, int]) -> None:
    if outcome.ok:
        report.balance(outcome.item, outcome.value)
    else:
        report.balance_failure(outcome.item, outcome.error)


async def query_balances(
    ledger: SolanaLedger,
    wallets: Sequence[str],
    *,
    max_concurrency: int | None = None,
) -> list[Outcome[str, int]]:
    """Fetch every wallet's balance concurrently, one result line per wallet."""

    async def _one(wallet: str) -> int:
        return await ledger.get_balance(WalletAddress.parse(wallet))

    return await fan_out(wallets, _one, _report, max_concurrency=max_concurrency)


async def run_balances(cfg: BalanceConfig) -> list[Outcome[str, int]]:
    try:
        await check_rpc_health(cfg.rpc_url, max_retries=1)
    except TransportError as e:
        # each wallet still gets its own failure line
        log.warning("RPC health check failed, querying anyway: %s", e)
    log.info("Querying %d wallets via %s", len(cfg.wallets), cfg.rpc_url)
    async with SolanaLedger(cfg.rpc_url, cfg.commitment) as ledger:
        return await query_balances(ledger, cfg.wallets, max_concurrency=cfg.max_concurrency)

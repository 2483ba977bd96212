import logging

from blocktap.config import RelayConfig
from blocktap.dispatch import DispatchStats, ReactiveDispatchLoop
from blocktap.ledger import SolanaLedger, check_rpc_health
from blocktap.models import Transfer, WalletAddress, parse_signer
from blocktap.stream import EventStreamSubscriber
from blocktap.submitter import TransactionSubmitter

log = logging.getLogger("blocktap.relay")


def bound_transfer(cfg: RelayConfig) -> Transfer:
    """The one transfer submitted on every block. Malformed keys are fatal here."""
    w = cfg.wallet
    return Transfer(
        sender=parse_signer(w.secret_key.get_secret_value()),
        recipient=WalletAddress.parse(w.to),
        amount=w.amount,
    )


async def run_relay(cfg: RelayConfig) -> DispatchStats:
    transfer = bound_transfer(cfg)
    await check_rpc_health(cfg.wallet.rpc_url)

    subscriber = EventStreamSubscriber(cfg.geyser.url, cfg.geyser.token.get_secret_value())
    async with SolanaLedger(cfg.wallet.rpc_url, cfg.commitment) as ledger:
        loop = ReactiveDispatchLoop(subscriber, TransactionSubmitter(ledger), transfer)
        return await loop.run()

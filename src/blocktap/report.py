"""Human-readable result lines.

One line per completed unit of work. Successes go to stdout, failures to stderr.
"""
import sys

import blocktap.constants as C
from blocktap.models import ChainEvent, SubmissionResult, Transfer, format_sol


def _out(line: str) -> None:
    print(line, file=sys.stdout, flush=True)


def _err(line: str) -> None:
    print(line, file=sys.stderr, flush=True)


def balance(address: str, lamports: int) -> None:
    _out(f"Wallet {address}: {format_sol(lamports)} {C.UNIT}")


def balance_failure(address: str, error: Exception) -> None:
    _err(f"Failed to fetch balance for {address}: {error}")


def block(event: ChainEvent) -> None:
    _out(f"New block! Hash: {event.block_hash}, Slot: {event.slot}")


def transfer_success(transfer: Transfer, confirmation: str) -> None:
    _out(
        f"Successfully transfer {format_sol(transfer.amount)} {C.UNIT} "
        f"from {transfer.sender_address} to {transfer.recipient}. TX hash: {confirmation}"
    )


def transfer_failure(amount: int, sender: str, recipient: str, error: Exception) -> None:
    _err(f"Failed to transfer {format_sol(amount)} {C.UNIT} from {sender} to {recipient}: {error}")


def transfer_outcome(transfer: Transfer, result: SubmissionResult) -> None:
    if result.ok:
        transfer_success(transfer, result.confirmation)
    else:
        transfer_failure(transfer.amount, str(transfer.sender_address), str(transfer.recipient), result.error)

import logging

from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction

from blocktap.errors import FreshnessError, SigningError, TransportError
from blocktap.ledger import SolanaLedger
from blocktap.models import BlockReference, SubmissionResult, Transfer

log = logging.getLogger("blocktap.submitter")

SUBMISSION_ERRORS = (TransportError, FreshnessError, SigningError)


def build_signed_transfer(t: Transfer, reference: BlockReference) -> Transaction:
    """Single system-program transfer, paid and signed by the sender."""
    sender = t.sender.pubkey()
    ix = transfer(TransferParams(from_pubkey=sender, to_pubkey=t.recipient.pubkey, lamports=t.amount))
    try:
        return Transaction.new_signed_with_payer([ix], sender, [t.sender], reference.blockhash)
    except Exception as e:  # solders raises its own SignerError type
        raise SigningError(f"could not sign transfer from {sender}: {e}") from e


class TransactionSubmitter:
    """Build, sign and submit one transfer per call. No retries, no state."""

    def __init__(self, ledger: SolanaLedger):
        self.ledger = ledger

    async def submit(self, t: Transfer) -> str:
        """Submit ``t`` and wait for confirmation.

        Returns:
            The confirmation signature.

        Raises:
            FreshnessError: no recent blockhash.
            SigningError: the sender key could not sign.
            TransportError: the node was unreachable or rejected the transaction.
        """
        reference = await self.ledger.get_recent_block_reference()
        txn = build_signed_transfer(t, reference)
        log.debug("Submitting %r against blockhash %s", t, reference.blockhash)
        return await self.ledger.submit_and_confirm(txn, reference)

    async def submit_result(self, t: Transfer) -> SubmissionResult:
        try:
            return SubmissionResult.success(await self.submit(t))
        except SUBMISSION_ERRORS as e:
            log.warning("Submission of %r failed: %s", t, e)
            return SubmissionResult.failure(e)
        except Exception as e:
            # client library errors outside the taxonomy must not end the caller's loop
            log.error("Unexpected error submitting %r: %s", t, e, exc_info=True)
            return SubmissionResult.failure(e)

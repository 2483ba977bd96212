# blocktap/dispatch.py
"""
Reactive dispatch loop that consumes block events from the geyser subscriber
and submits the bound transfer once per event.

Events are handled strictly one at a time: the submission for block n+1 does
not start until the outcome for block n has been reported. At most one
transaction from the sender is in flight.
"""
import logging
from contextlib import aclosing
from dataclasses import dataclass

from blocktap import report
from blocktap.models import Transfer
from blocktap.stream import EventStreamSubscriber
from blocktap.submitter import TransactionSubmitter

log = logging.getLogger("blocktap.dispatch")


@dataclass(slots=True)
class DispatchStats:
    events: int = 0
    succeeded: int = 0
    failed: int = 0


class ReactiveDispatchLoop:
    def __init__(self, subscriber: EventStreamSubscriber, submitter: TransactionSubmitter, transfer: Transfer):
        self.subscriber = subscriber
        self.submitter = submitter
        self._transfer = transfer
        self.stats = DispatchStats()

    @property
    def transfer(self) -> Transfer:
        return self._transfer

    async def run(self) -> DispatchStats:
        """
        Run until the stream ends.

        Per-event submission failures are reported and the loop carries on.
        A TransportError from the stream ends the loop and propagates.
        """
        log.info("Dispatch loop starting for %r", self._transfer)
        try:
            async with aclosing(self.subscriber.events()) as events:
                async for event in events:
                    self.stats.events += 1
                    log.debug("Block %s at slot %d", event.block_hash, event.slot)
                    report.block(event)

                    result = await self.submitter.submit_result(self._transfer)
                    if result.ok:
                        self.stats.succeeded += 1
                    else:
                        self.stats.failed += 1
                    report.transfer_outcome(self._transfer, result)
        finally:
            log.info(
                "Dispatch loop stopped (%d events, %d submitted, %d failed; stream %s: %s)",
                self.stats.events, self.stats.succeeded, self.stats.failed,
                self.subscriber.state, self.subscriber.close_reason,
            )
        return self.stats

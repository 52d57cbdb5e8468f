"""
Receipt Handler

Receipts are filed against expenditures and processed in arrival order.
Processed receipts are stacked so the most recent processing step can be
undone, which puts the receipt back at the end of the pending queue.
"""

import threading
from typing import Optional

import structlog

from xpense.containers import DynamicSequence, FifoQueue, LifoStack
from xpense.models.ledger import Receipt


class ReceiptHandler:
    """FIFO processing queue plus a LIFO history of processed receipts."""

    def __init__(self):
        self._receipts: DynamicSequence[Receipt] = DynamicSequence()
        self._pending: FifoQueue[Receipt] = FifoQueue()
        self._processed: LifoStack[Receipt] = LifoStack()
        self._lock = threading.Lock()
        self._logger = structlog.get_logger("xpense.receipts")

    def add_receipt(self, receipt: Optional[Receipt]) -> bool:
        """Store the receipt and queue it for processing. None is ignored."""
        if receipt is None:
            return False
        with self._lock:
            self._receipts.append(receipt)
            self._pending.offer(receipt)
        self._logger.debug("receipt_queued", receipt_id=receipt.id, expense_code=receipt.expense_code)
        return True

    def process_next_receipt(self) -> Optional[Receipt]:
        """Take the oldest pending receipt and mark it processed."""
        with self._lock:
            receipt = self._pending.poll()
            if receipt is not None:
                self._processed.push(receipt)
        return receipt

    def last_processed_receipt(self) -> Optional[Receipt]:
        return self._processed.peek()

    def undo_last_processing(self) -> Optional[Receipt]:
        """Move the most recently processed receipt back to the pending queue."""
        with self._lock:
            receipt = self._processed.pop()
            if receipt is not None:
                self._pending.offer(receipt)
        if receipt is not None:
            self._logger.info("receipt_processing_undone", receipt_id=receipt.id)
        return receipt

    def pending_count(self) -> int:
        return self._pending.size()

    def processed_count(self) -> int:
        return self._processed.size()

    def clear_processed(self) -> None:
        with self._lock:
            self._processed.clear()

    def get_all_receipts(self) -> list[Receipt]:
        return self._receipts.to_list()

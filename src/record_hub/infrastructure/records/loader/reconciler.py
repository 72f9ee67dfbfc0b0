"""
Batch reconciliation: puts resolved records back in requested order.

Records arrive per source in arbitrary order and sometimes under a renamed
id. The reconciler claims one requested position per record through the
IdentifierList, fills further duplicate requests with independent copies,
and finally builds placeholders for every position left empty.
"""

import copy
import threading
from typing import Any, Iterable, List, Optional

from record_hub.utils.logging import get_logger

from ..exceptions import PositionClaimError
from ..factory import RecordFactory
from ..id_list import IdentifierList
from ..types import BatchStatistics

logger = get_logger(__name__)


class BatchReconciler:
    """
    Position-indexed result buffer for one batch load.

    ``place`` may be called from several threads (one per source); each
    position is written at most once.
    """

    def __init__(
        self,
        id_list: IdentifierList,
        record_factory: RecordFactory,
        statistics: Optional[BatchStatistics] = None,
    ) -> None:
        self.id_list = id_list
        self.record_factory = record_factory
        self.statistics = statistics or BatchStatistics(total_requested=len(id_list))
        self._buffer: List[Optional[Any]] = [None] * len(id_list)
        self._lock = threading.Lock()

    def _write(self, position: int, record: Any) -> None:
        if self._buffer[position] is not None:
            raise RuntimeError(f"Position {position} was already filled")
        self._buffer[position] = record

    def place(self, records: Iterable[Any]) -> int:
        """
        Claim positions for resolved records.

        Records that match no unclaimed position are dropped and logged.

        Returns:
            Number of positions filled.
        """
        filled = 0
        with self._lock:
            for record in records:
                try:
                    position, key = self.id_list.claim(record)
                except PositionClaimError as e:
                    self.statistics.dropped_records += 1
                    logger.warning(
                        "record_loader.position_claim_failed",
                        source=e.source,
                        record_id=e.record_id,
                        previous_id=e.previous_id,
                    )
                    continue
                self._write(position, record)
                filled += 1

                # Duplicate requests under the claimed key get their own copy
                while self.id_list.has_unclaimed(key):
                    position = self.id_list.claim_key(key)
                    self._write(position, copy.deepcopy(record))
                    self.statistics.duplicates_filled += 1
                    filled += 1
        return filled

    def finalize(self) -> List[Any]:
        """
        Fill empty positions with placeholders and return the ordered records.
        """
        with self._lock:
            for entry in self.id_list.all():
                if self._buffer[entry.position] is None:
                    self._buffer[entry.position] = self.record_factory.build_missing(
                        entry.id, entry.source, entry.extra_fields
                    )
                    self.statistics.placeholders += 1
            return list(self._buffer)

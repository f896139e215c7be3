from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from bridgecore.protocol.models import UnitOperation


@dataclass
class TransactionBatch:
    """
    Ordered operations of one atomic unit, with the index of the operation
    currently executing. Implements CoTransactionInspector.

    Usage:
        batch = TransactionBatch()
        batch.append(charge_op)
        batch.current_index = batch.append(deposit_op)
    """

    operations: List[UnitOperation] = field(default_factory=list)
    current_index: int = 0

    def append(self, operation: UnitOperation) -> int:
        self.operations.append(operation)
        return len(self.operations) - 1

    def preceding_operation(self) -> Optional[UnitOperation]:
        index = self.current_index - 1
        if index < 0 or index >= len(self.operations):
            return None
        return self.operations[index]

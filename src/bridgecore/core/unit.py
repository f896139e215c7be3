"""
Execution Units

A request either takes effect in full or not at all. ExecutionUnit opens a
unit on every participant (account store, ledger), commits them in order
when the block exits cleanly, and rolls every still-open participant back
when anything raises. The exception always propagates.

Each participant serializes its own units: begin() blocks while another
unit is open on it and commit()/rollback() release it. A participant whose
commit() fails stays open so the unit can still roll it back.

Usage:
    with ExecutionUnit(store, ledger):
        guard.claim(origin)
        ledger.transfer_native(admin, receiver, amount)
"""

from __future__ import annotations

import logging
from typing import List

from bridgecore.ledger.capabilities import UnitParticipant

logger = logging.getLogger(__name__)


class ExecutionUnit:
    def __init__(self, *participants: UnitParticipant) -> None:
        self._participants = participants
        self._open: List[UnitParticipant] = []

    def __enter__(self) -> ExecutionUnit:
        try:
            for participant in self._participants:
                participant.begin()
                self._open.append(participant)
        except BaseException:
            self._rollback()
            raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            logger.debug("Rolling back unit: %s", exc_val)
            self._rollback()
            return False

        try:
            while self._open:
                self._open[0].commit()
                self._open.pop(0)
        except BaseException:
            self._rollback()
            raise
        return False

    def _rollback(self) -> None:
        while self._open:
            self._open.pop().rollback()

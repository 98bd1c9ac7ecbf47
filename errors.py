"""
Error taxonomy for SplitLedger

Every error is recoverable; the front-end decides how to present it.
"""
from __future__ import annotations
from typing import Optional


class LedgerError(Exception):
    """Base class for all ledger core errors"""


class DuplicateName(LedgerError):
    def __init__(self, name: str):
        super().__init__(f"person already registered: {name}")
        self.name = name


class UnknownPerson(LedgerError):
    def __init__(self, name: str):
        super().__init__(f"no such person: {name}")
        self.name = name


class InvalidAmount(LedgerError):
    """Amount is not an integer number of minor units, or has the wrong sign"""

    def __init__(self, amount, reason: str = "must be a positive integer"):
        super().__init__(f"invalid amount {amount!r}: {reason}")
        self.amount = amount
        self.reason = reason


class ShareMismatch(LedgerError):
    def __init__(self, total: int, allocated: int):
        super().__init__(f"shares sum to {allocated}, expense total is {total}")
        self.total = total
        self.allocated = allocated


class NotFound(LedgerError):
    def __init__(self, transaction_id: str):
        super().__init__(f"no such transaction id: {transaction_id}")
        self.transaction_id = transaction_id


class AlreadyUndone(LedgerError):
    def __init__(self, transaction_id: str):
        super().__init__(f"transaction already undone: {transaction_id}")
        self.transaction_id = transaction_id


class IntegrityError(LedgerError):
    """Recomputed state disagrees with an invariant or a reported snapshot"""


class NonZeroSum(IntegrityError):
    def __init__(self, total: int):
        super().__init__(f"balances sum to {total}, expected 0")
        self.total = total


class BalanceMismatch(IntegrityError):
    def __init__(self, person: str, expected: int, actual: Optional[int]):
        super().__init__(
            f"balance mismatch for {person}: recomputed {expected}, reported {actual}"
        )
        self.person = person
        self.expected = expected
        self.actual = actual

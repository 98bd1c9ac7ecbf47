"""
Ledger core for SplitLedger: person registry, transaction log and the
Ledger object that ties them together.

The log is the single source of truth. Balances, verification and
settlement plans are always derived from it.
"""
from __future__ import annotations
import hashlib
import json
import threading
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from computations import (
    build_shares,
    compute_balances,
    compute_summary,
    compute_transfers,
    total_spending,
)
from errors import AlreadyUndone, DuplicateName, InvalidAmount, NotFound, ShareMismatch, UnknownPerson
from integrity import verify
from models import DirectPayment, Expense, Transaction, TransactionKind, Transfer, utc_now

ID_LENGTH = 8


def check_amount(amount, allow_zero: bool = False) -> None:
    """Amounts are ints in minor units; positive unless allow_zero"""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(amount, "must be an integer number of minor units")
    if amount < 0 or (amount == 0 and not allow_zero):
        raise InvalidAmount(amount, "must be non-negative" if allow_zero else "must be positive")


def _canonical(kind: TransactionKind) -> list:
    if isinstance(kind, DirectPayment):
        return ["direct", kind.payer, kind.payee, kind.amount]
    return ["expense", kind.payer, kind.total, sorted(kind.shares.items())]


def make_id(sequence: int, kind: TransactionKind, timestamp: datetime, description: str, salt: int = 0) -> str:
    """Short hex id from the insertion counter and the transaction content"""
    payload = json.dumps([sequence, salt, _canonical(kind), timestamp.isoformat(), description])
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:ID_LENGTH]


class PersonRegistry:
    """Ordered set of participant names. Registration order is the tie-break order."""

    def __init__(self, names: Iterable[str] = ()):
        self._names: List[str] = []
        for name in names:
            self.register(name)

    def register(self, name: str) -> str:
        if not isinstance(name, str) or not name.strip():
            raise ValueError("person name must be a non-empty string")
        if name in self._names:
            raise DuplicateName(name)
        self._names.append(name)
        return name

    def all(self) -> List[str]:
        return list(self._names)

    def index(self, name: str) -> int:
        try:
            return self._names.index(name)
        except ValueError:
            raise UnknownPerson(name) from None

    def __contains__(self, name) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))


class TransactionLog:
    """
    Append-only history of transactions in insertion order.
    Undo flips an entry to inactive; nothing is ever removed, and ids are
    never reissued even after undo.
    """

    def __init__(self, registry: PersonRegistry):
        self.registry = registry
        self._entries: List[Transaction] = []
        self._index: Dict[str, int] = {}
        self._next_sequence = 1

    def require_person(self, name: str) -> None:
        if name not in self.registry:
            raise UnknownPerson(name)

    def validate(self, kind: TransactionKind) -> None:
        """Raise UnknownPerson, InvalidAmount or ShareMismatch for a bad transaction"""
        if isinstance(kind, DirectPayment):
            self.require_person(kind.payer)
            self.require_person(kind.payee)
            check_amount(kind.amount)
        elif isinstance(kind, Expense):
            self.require_person(kind.payer)
            for person in kind.shares:
                self.require_person(person)
            check_amount(kind.total)
            for share in kind.shares.values():
                check_amount(share, allow_zero=True)
            allocated = sum(kind.shares.values())
            if allocated != kind.total:
                raise ShareMismatch(kind.total, allocated)
        else:
            raise TypeError(f"unknown transaction kind: {type(kind).__name__}")

    def _new_id(self, sequence: int, kind: TransactionKind, timestamp: datetime, description: str) -> str:
        salt = 0
        tid = make_id(sequence, kind, timestamp, description)
        while tid in self._index:
            salt += 1
            tid = make_id(sequence, kind, timestamp, description, salt)
        return tid

    def append(self, kind: TransactionKind, description: str = "", timestamp: Optional[datetime] = None) -> str:
        self.validate(kind)
        timestamp = _normalize_timestamp(timestamp)
        description = description or ""
        sequence = self._next_sequence
        tid = self._new_id(sequence, kind, timestamp, description)
        self._add(Transaction(tid, sequence, kind, timestamp, description))
        return tid

    def restore(self, transaction: Transaction) -> None:
        """Re-insert a stored transaction keeping its id, sequence and active flag"""
        self.validate(transaction.kind)
        if transaction.id in self._index:
            raise ValueError(f"duplicate transaction id: {transaction.id}")
        self._add(replace(transaction, timestamp=_normalize_timestamp(transaction.timestamp)))

    def _add(self, transaction: Transaction) -> None:
        self._index[transaction.id] = len(self._entries)
        self._entries.append(transaction)
        self._next_sequence = max(self._next_sequence, transaction.sequence + 1)

    def undo(self, transaction_id: str) -> None:
        pos = self._index.get(transaction_id)
        if pos is None:
            raise NotFound(transaction_id)
        t = self._entries[pos]
        if not t.active:
            raise AlreadyUndone(transaction_id)
        self._entries[pos] = replace(t, active=False)

    def get(self, transaction_id: str) -> Transaction:
        pos = self._index.get(transaction_id)
        if pos is None:
            raise NotFound(transaction_id)
        return self._entries[pos]

    def list(self) -> List[Transaction]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def _normalize_timestamp(timestamp: Optional[datetime]) -> datetime:
    if timestamp is None:
        return utc_now()
    if not isinstance(timestamp, datetime):
        raise TypeError("timestamp must be a datetime")
    if timestamp.tzinfo is None:
        # naive times are taken as UTC
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


class Ledger:
    """
    One group's registry and transaction log.

    All mutations and consistency-sensitive reads hold a per-ledger lock,
    so one instance can be shared by several front-ends in one process.
    """

    def __init__(self, people: Iterable[str] = ()):
        self.registry = PersonRegistry(people)
        self.log = TransactionLog(self.registry)
        self._lock = threading.RLock()

    @classmethod
    def restore(cls, people: Iterable[str], transactions: Iterable[Transaction]) -> "Ledger":
        """Rebuild a ledger from stored people and full history (ids preserved)"""
        ledger = cls(people)
        for t in transactions:
            ledger.log.restore(t)
        return ledger

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def people(self) -> List[str]:
        return self.registry.all()

    def register(self, name: str) -> str:
        with self._lock:
            return self.registry.register(name)

    add_person = register

    # ---------- Mutations ----------
    def append(self, kind: TransactionKind, description: str = "", timestamp: Optional[datetime] = None) -> str:
        with self._lock:
            return self.log.append(kind, description, timestamp)

    def add_direct_payment(self, payer: str, payee: str, amount: int,
                           description: str = "", timestamp: Optional[datetime] = None) -> str:
        return self.append(DirectPayment(payer, payee, amount), description, timestamp)

    def add_expense(self, payer: str, total: int, shares: Mapping[str, int],
                    description: str = "", timestamp: Optional[datetime] = None) -> str:
        return self.append(Expense(payer, total, dict(shares)), description, timestamp)

    def add_split_expense(self, payer: str, total: int, beneficiaries: Sequence[str],
                          fixed: Optional[Mapping[str, int]] = None,
                          description: str = "", timestamp: Optional[datetime] = None) -> str:
        """Expense where `fixed` people pay set shares and the rest is split evenly"""
        with self._lock:
            for name in [payer, *beneficiaries, *(fixed or {})]:
                self.log.require_person(name)
            check_amount(total)
            shares = build_shares(total, fixed, beneficiaries, order=self.registry.all())
            return self.append(Expense(payer, total, shares), description, timestamp)

    def undo(self, transaction_id: str) -> None:
        with self._lock:
            self.log.undo(transaction_id)

    # ---------- Queries ----------
    def transactions(self) -> List[Transaction]:
        with self._lock:
            return self.log.list()

    def get(self, transaction_id: str) -> Transaction:
        with self._lock:
            return self.log.get(transaction_id)

    def balances(self) -> Dict[str, int]:
        with self._lock:
            return compute_balances(self.log.list(), self.registry.all())

    def total_spending(self) -> int:
        with self._lock:
            return total_spending(self.log.list())

    def summary(self, start: Optional[date] = None, end: Optional[date] = None) -> Dict[str, dict]:
        with self._lock:
            return compute_summary(self.log.list(), self.registry.all(), start, end)

    def verify(self, snapshot: Optional[Mapping[str, int]] = None) -> None:
        verify(self, snapshot)

    def resolve(self) -> List[Transfer]:
        with self._lock:
            return compute_transfers(self.balances(), self.registry.all())

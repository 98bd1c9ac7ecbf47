"""
Data models for SplitLedger
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, NamedTuple, Union


@dataclass(frozen=True)
class DirectPayment:
    """Money moved straight from one person to another"""
    payer: str
    payee: str
    amount: int  # minor units


@dataclass(frozen=True)
class Expense:
    """One person paid a total on behalf of several beneficiaries"""
    payer: str
    total: int  # minor units
    shares: Mapping[str, int]  # person -> share, sums to total

    def __post_init__(self):
        # shares are read-only once recorded
        object.__setattr__(self, "shares", MappingProxyType(dict(self.shares)))


TransactionKind = Union[DirectPayment, Expense]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Transaction:
    """Single ledger entry. Undo replaces it with an inactive copy."""
    id: str
    sequence: int  # insertion counter, never reused
    kind: TransactionKind
    timestamp: datetime = field(default_factory=utc_now)
    description: str = ""
    active: bool = True

    @property
    def is_direct(self) -> bool:
        return isinstance(self.kind, DirectPayment)


class Transfer(NamedTuple):
    """Settlement instruction: payer pays payee amount"""
    payer: str
    payee: str
    amount: int

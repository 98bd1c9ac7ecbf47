"""
Integrity verification for SplitLedger

Replays the active transactions from scratch and checks the result
against the zero-sum invariant and, optionally, a reported snapshot.
Never mutates the ledger.
"""
from __future__ import annotations
from typing import Dict, Mapping, Optional

from errors import BalanceMismatch, NonZeroSum, UnknownPerson
from models import DirectPayment


def recompute_balances(ledger) -> Dict[str, int]:
    """Fresh fold of the active transactions, independent of computations.compute_balances"""
    with ledger.lock:
        people = ledger.registry.all()
        transactions = ledger.log.list()

    fresh = dict.fromkeys(people, 0)
    for t in transactions:
        if not t.active:
            continue
        k = t.kind
        if isinstance(k, DirectPayment):
            moves = [(k.payer, k.amount), (k.payee, -k.amount)]
        else:
            moves = [(k.payer, k.total)] + [(p, -s) for p, s in k.shares.items()]
        for person, delta in moves:
            if person not in fresh:
                raise UnknownPerson(person)
            fresh[person] += delta
    return fresh


def verify(ledger, snapshot: Optional[Mapping[str, int]] = None) -> None:
    """
    Raise NonZeroSum if the recomputed balances do not sum to zero, or
    BalanceMismatch(person, recomputed, reported) for the first person (in
    registration order) whose snapshot value differs. A person missing
    from the snapshot is reported as None.
    """
    with ledger.lock:
        fresh = recompute_balances(ledger)

    total = sum(fresh.values())
    if total != 0:
        raise NonZeroSum(total)

    if snapshot is None:
        return
    for name in snapshot:
        if name not in fresh:
            raise UnknownPerson(name)
    for person, expected in fresh.items():
        actual = snapshot.get(person)
        if actual != expected:
            raise BalanceMismatch(person, expected, actual)

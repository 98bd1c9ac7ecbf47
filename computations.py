"""
Business logic and computations for SplitLedger

All amounts are integers in minor currency units. Every function here is
pure: it reads transactions and balances and returns new values.
"""
from __future__ import annotations
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from errors import InvalidAmount, NonZeroSum, ShareMismatch, UnknownPerson
from models import DirectPayment, Expense, Transaction, TransactionKind, Transfer


def split_evenly(total: int, people: Sequence[str]) -> Dict[str, int]:
    """
    Split total across people. The first (total mod N) people in the given
    order receive one extra minor unit, so the shares always sum to total.
    """
    if isinstance(total, bool) or not isinstance(total, int) or total < 0:
        raise InvalidAmount(total, "must be a non-negative integer")
    if not people:
        if total:
            raise ShareMismatch(total, 0)
        return {}
    base, extra = divmod(total, len(people))
    return {p: base + (1 if i < extra else 0) for i, p in enumerate(people)}


def build_shares(
    total: int,
    fixed: Optional[Mapping[str, int]] = None,
    even: Iterable[str] = (),
    order: Optional[Sequence[str]] = None,
) -> Dict[str, int]:
    """
    Combine fixed shares with an even split of whatever is left.

    `even` names are ranked by `order` (registration order) before the
    remainder is split; names missing from `order` keep their given order
    after the ranked ones.
    """
    fixed = dict(fixed or {})
    allocated = sum(fixed.values())
    remainder = total - allocated
    if remainder < 0:
        raise ShareMismatch(total, allocated)

    names: List[str] = []
    for name in even:
        if name not in fixed and name not in names:
            names.append(name)
    if remainder > 0 and not names:
        raise ShareMismatch(total, allocated)
    if order is not None:
        rank = {p: i for i, p in enumerate(order)}
        names.sort(key=lambda p: rank.get(p, len(rank)))

    shares = dict(fixed)
    shares.update(split_evenly(remainder, names))
    return shares


def transaction_effects(kind: TransactionKind) -> Dict[str, int]:
    """Per-person balance change caused by one transaction; sums to zero"""
    if isinstance(kind, DirectPayment):
        effects = {kind.payer: kind.amount}
        effects[kind.payee] = effects.get(kind.payee, 0) - kind.amount
        return effects
    if isinstance(kind, Expense):
        effects = {kind.payer: kind.total}
        for person, share in kind.shares.items():
            effects[person] = effects.get(person, 0) - share
        return effects
    raise TypeError(f"unknown transaction kind: {type(kind).__name__}")


def compute_balances(transactions: Iterable[Transaction], people: Sequence[str]) -> Dict[str, int]:
    """
    Fold active transactions into a signed balance per person.
    Every registered person starts at zero; keys follow registry order.
    Positive -> owed money by the group; negative -> owes money.
    """
    balances = {p: 0 for p in people}
    for t in transactions:
        if not t.active:
            continue
        for person, delta in transaction_effects(t.kind).items():
            if person not in balances:
                raise UnknownPerson(person)
            balances[person] += delta
    return balances


def total_spending(transactions: Iterable[Transaction]) -> int:
    """Sum of active expense totals (direct payments are not spending)"""
    return sum(t.kind.total for t in transactions if t.active and isinstance(t.kind, Expense))


def filter_transactions_by_date(
    transactions: Iterable[Transaction],
    start: Optional[date],
    end: Optional[date]
) -> List[Transaction]:
    """Filter transactions by inclusive date range of their timestamp"""
    out = []
    for t in transactions:
        td = t.timestamp.date()
        if start and td < start:
            continue
        if end and td > end:
            continue
        out.append(t)
    return out


def compute_summary(
    transactions: Iterable[Transaction],
    people: Sequence[str],
    start: Optional[date] = None,
    end: Optional[date] = None
) -> Dict[str, dict]:
    """
    Compute summary statistics for each person over active transactions.
    Returns dict mapping person -> {paid, consumed, sent, received, net}
    where net = paid - consumed + sent - received.
    """
    txs = [t for t in filter_transactions_by_date(transactions, start, end) if t.active]

    paid = {p: 0 for p in people}
    consumed = {p: 0 for p in people}
    sent = {p: 0 for p in people}
    received = {p: 0 for p in people}

    for t in txs:
        k = t.kind
        if isinstance(k, Expense):
            paid[k.payer] += k.total
            for p, share in k.shares.items():
                consumed[p] += share
        else:
            sent[k.payer] += k.amount
            received[k.payee] += k.amount

    return {
        p: {
            "paid": paid[p],
            "consumed": consumed[p],
            "sent": sent[p],
            "received": received[p],
            "net": paid[p] - consumed[p] + sent[p] - received[p],
        } for p in people
    }


def compute_transfers(balances: Mapping[str, int], order: Optional[Sequence[str]] = None) -> List[Transfer]:
    """
    Compute transfers to settle debts.
    Greedy settlement: the most negative debtor pays the most positive
    creditor min(|debt|, credit) until everyone is at zero. Ties go to the
    person registered first (`order`, defaulting to the mapping's order).
    Each step zeroes at least one person, so N nonzero balances need at
    most N - 1 transfers.
    """
    total = sum(balances.values())
    if total != 0:
        raise NonZeroSum(total)

    rank = {p: i for i, p in enumerate(order if order is not None else balances)}
    remaining = {p: v for p, v in balances.items() if v != 0}

    def tie(p):
        return rank.get(p, len(rank))

    transfers = []
    while remaining:
        debtors = [p for p, v in remaining.items() if v < 0]
        creditors = [p for p, v in remaining.items() if v > 0]
        debtor = min(debtors, key=lambda p: (remaining[p], tie(p)))
        creditor = min(creditors, key=lambda p: (-remaining[p], tie(p)))

        x = min(-remaining[debtor], remaining[creditor])
        transfers.append(Transfer(debtor, creditor, x))
        remaining[debtor] += x
        remaining[creditor] -= x
        for p in (debtor, creditor):
            if remaining[p] == 0:
                del remaining[p]

    return transfers


def apply_transfers(balances: Mapping[str, int], transfers: Iterable[Transfer]) -> Dict[str, int]:
    """Balances after each transfer is recorded as a direct payment"""
    out = dict(balances)
    for payer, payee, amount in transfers:
        out[payer] = out.get(payer, 0) + amount
        out[payee] = out.get(payee, 0) - amount
    return out

"""
CSV export and import functionality for SplitLedger
"""
from __future__ import annotations
import csv
import logging
from datetime import datetime
from typing import Dict, Iterable, List

from models import DirectPayment, Expense, Transaction

logger = logging.getLogger(__name__)

COLUMNS = ['id', 'sequence', 'timestamp', 'kind', 'payer', 'payee', 'amount', 'shares', 'description', 'active']


def _format_shares(shares: Dict[str, int]) -> str:
    return ';'.join(f"{k}:{v}" for k, v in shares.items())


def _parse_shares(text: str) -> Dict[str, int]:
    shares = {}
    if text:
        for pair in text.split(';'):
            if ':' not in pair:
                raise ValueError(f"bad share entry {pair!r}")
            k, v = pair.rsplit(':', 1)
            shares[k.strip()] = int(v.strip())
    return shares


def export_transactions_to_csv(transactions: Iterable[Transaction], filepath: str) -> None:
    """
    Export transactions to CSV file, undone ones included.
    Amounts are in minor units; for expenses `amount` is the total.
    """
    count = 0
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(COLUMNS)

        for t in transactions:
            k = t.kind
            if isinstance(k, DirectPayment):
                row = ['direct', k.payer, k.payee, k.amount, '']
            else:
                row = ['expense', k.payer, '', k.total, _format_shares(k.shares)]
            writer.writerow([t.id, t.sequence, t.timestamp.isoformat()] + row + [t.description, int(t.active)])
            count += 1
    logger.info("exported %d transactions to %s", count, filepath)


def import_transactions_from_csv(filepath: str) -> List[Transaction]:
    """
    Import transactions from CSV file written by export_transactions_to_csv
    Returns list of Transaction objects
    """
    transactions = []

    with open(filepath, 'r', encoding='utf-8', newline='') as f:
        reader = csv.DictReader(f)

        for row in reader:
            try:
                if row['kind'] == 'direct':
                    kind = DirectPayment(row['payer'], row['payee'], int(row['amount']))
                elif row['kind'] == 'expense':
                    kind = Expense(row['payer'], int(row['amount']), _parse_shares(row['shares']))
                else:
                    raise ValueError(f"unknown kind {row['kind']!r}")
                transactions.append(Transaction(
                    id=row['id'],
                    sequence=int(row['sequence']),
                    kind=kind,
                    timestamp=datetime.fromisoformat(row['timestamp']),
                    description=row.get('description') or '',
                    active=row.get('active', '1') not in ('0', 'False', 'false'),
                ))
            except (KeyError, TypeError, ValueError) as ex:
                raise ValueError(f"{filepath}, line {reader.line_num}: {ex}") from ex

    logger.info("imported %d transactions from %s", len(transactions), filepath)
    return transactions

"""
Excel export functionality for SplitLedger
"""
from __future__ import annotations
import logging
from datetime import date
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from computations import compute_summary, compute_transfers, filter_transactions_by_date
from ledger import Ledger
from models import DirectPayment
from utils import to_major

logger = logging.getLogger(__name__)

MONEY_FORMAT = "0.00"


def _style_header(ws, row=1):
    """Apply header styling to worksheet row"""
    header_font = Font(bold=True, color="FFFFFF")
    fill = PatternFill("solid", fgColor="4F81BD")
    align = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="A0A0A0")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = fill
        cell.alignment = align
        cell.border = border


def _autosize_columns(ws, min_width=10, max_width=45):
    """Auto-size columns based on content"""
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 0
        for cell in ws[letter]:
            v = cell.value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def _money_columns(ws, first_col: int, last_col: int, first_row: int = 2):
    for r in range(first_row, ws.max_row + 1):
        for c in range(first_col, last_col + 1):
            ws.cell(r, c).number_format = MONEY_FORMAT


def export_excel(
    ledger: Ledger,
    filepath: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    digits: int = 2
) -> None:
    """
    Export ledger to Excel file with three sheets:
    - Transactions: every transaction in the date range, undone ones greyed
    - Summary: paid / consumed / sent / received / net per person
    - Transfers: settlement plan for the current balances (whole ledger)
    """
    with ledger.lock:
        people = ledger.people
        txs = filter_transactions_by_date(ledger.transactions(), start, end)
        summary = compute_summary(txs, people)
        transfers = compute_transfers(ledger.balances(), people)

    wb = Workbook()
    # remove default sheet
    wb.remove(wb.active)

    # Transactions sheet: one share column per person
    ws = wb.create_sheet("Transactions")
    headers = ["id", "time", "kind", "description", "payer", "payee", "amount", "active"] + people
    ws.append(headers)
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    grey = Font(color="808080", italic=True)
    for t in txs:
        k = t.kind
        if isinstance(k, DirectPayment):
            row = [t.id, t.timestamp.strftime("%Y-%m-%d %H:%M"), "direct", t.description,
                   k.payer, k.payee, to_major(k.amount, digits), "yes" if t.active else "undone"]
            row += [None for _ in people]
        else:
            row = [t.id, t.timestamp.strftime("%Y-%m-%d %H:%M"), "expense", t.description,
                   k.payer, "", to_major(k.total, digits), "yes" if t.active else "undone"]
            row += [to_major(k.shares[p], digits) if p in k.shares else None for p in people]
        ws.append(row)
        if not t.active:
            for cell in ws[ws.max_row]:
                cell.font = grey
    _money_columns(ws, 7, 7)
    _money_columns(ws, 9, 8 + len(people))
    _autosize_columns(ws)

    # Summary sheet
    ws = wb.create_sheet("Summary")
    ws.append(["Person", "Paid", "Consumed", "Sent", "Received", "Net"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for p in people:
        s = summary[p]
        ws.append([p] + [to_major(s[key], digits) for key in ("paid", "consumed", "sent", "received", "net")])
    if people:
        last = ws.max_row
        ws.append(["TOTALS"] + [f"=SUM({get_column_letter(c)}2:{get_column_letter(c)}{last})" for c in range(2, 7)])
        ws.cell(ws.max_row, 1).font = Font(bold=True)
    _money_columns(ws, 2, 6)
    _autosize_columns(ws)

    # Transfers sheet
    ws = wb.create_sheet("Transfers")
    ws.append(["From (Debtor)", "To (Creditor)", "Amount"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for a, b, amt in transfers:
        ws.append([a, b, to_major(amt, digits)])
    _money_columns(ws, 3, 3)
    _autosize_columns(ws)

    wb.save(filepath)
    logger.info("exported %d transactions and %d transfers to %s", len(txs), len(transfers), filepath)

"""
SplitLedger command-line front-end
- Record who paid what and who benefited, undo mistakes by id.
- Show balances, verify the ledger and print a minimal settlement plan.
- Export CSV / Excel reports.

Run:
  splitledger ledger.json new Alice Bob Charlie
  splitledger ledger.json add-expense -p Alice -a 75 -t Alice Bob Charlie
  splitledger ledger.json balances
"""
from __future__ import annotations
import argparse
import logging
import os
import sys
from typing import Dict, List, Optional, Sequence, Tuple

from config import LedgerFileError, Settings, load_ledger, load_settings, save_ledger
from csv_handler import export_transactions_to_csv, import_transactions_from_csv
from errors import LedgerError
from excel_export import export_excel
from ledger import Ledger
from utils import format_amount, parse_amount, parse_date, parse_datetime

logger = logging.getLogger(__name__)


def parse_beneficiaries(tokens: Sequence[str], digits: int = 2) -> Tuple[Dict[str, int], List[str]]:
    """
    Split "Ben 14 George Mike" into fixed shares {Ben: 1400} and the
    names sharing the rest evenly [George, Mike].
    """
    fixed: Dict[str, int] = {}
    even: List[str] = []
    prev: Optional[str] = None
    for tok in tokens:
        try:
            amount = parse_amount(tok, digits)
        except ValueError:
            if prev is not None:
                even.append(prev)
            prev = tok
            continue
        if prev is None:
            raise ValueError(f"expected a name before {tok}")
        fixed[prev] = amount
        prev = None
    if prev is not None:
        even.append(prev)
    return fixed, even


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="splitledger", description="Shared expense ledger")
    parser.add_argument("path", help="Path to ledger file to operate on")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("new", help="Create new ledger")
    p.add_argument("names", nargs="*", help="Names of the people on the ledger (default: people.json)")
    p.add_argument("--force", action="store_true", help="Overwrite an existing file")

    p = sub.add_parser("add-person", help="Add a new person")
    p.add_argument("name")

    p = sub.add_parser("add-direct", help="Add a direct payment")
    p.add_argument("-f", "--from", dest="payer", required=True, help="Name of person that paid")
    p.add_argument("-t", "--to", dest="payee", required=True, help="Name of person that got paid")
    p.add_argument("-a", "--amount", required=True)
    p.add_argument("-d", "--description", default="Transfer")
    p.add_argument("-T", "--time", help='When it happened, e.g. "2022-05-01 12:21". Default is now.')

    p = sub.add_parser("add-expense", help="Add an expense")
    p.add_argument("-p", "--payer", required=True)
    p.add_argument("-a", "--amount", required=True, help="Total paid")
    p.add_argument("-t", "--to", nargs="+", required=True, metavar="NAME [AMOUNT]",
                   help="Beneficiaries. A number after a name fixes that share; "
                        "the rest is split evenly, e.g. `Ben 14 George Mike`")
    p.add_argument("-d", "--description", default="")
    p.add_argument("-T", "--time")

    p = sub.add_parser("undo", help="Undo a transaction")
    p.add_argument("id", help="Transaction id as shown by `list`")

    sub.add_parser("list", help="List all transactions")
    sub.add_parser("balances", help="Show balances")
    sub.add_parser("verify", help="Recompute balances and check the ledger")

    p = sub.add_parser("resolve", help="Show payments that settle all balances")
    p.add_argument("--apply", action="store_true", help="Record the payments in the ledger")

    for name, help_text in (("summary", "Per-person totals"), ("export-excel", "Export Excel report")):
        p = sub.add_parser(name, help=help_text)
        if name == "export-excel":
            p.add_argument("file")
        p.add_argument("--start", type=parse_date, help="YYYY-MM-DD")
        p.add_argument("--end", type=parse_date, help="YYYY-MM-DD")

    p = sub.add_parser("export-csv", help="Export transactions to CSV")
    p.add_argument("file")
    p = sub.add_parser("import-csv", help="Append active transactions from a CSV export")
    p.add_argument("file")
    return parser


def _describe(t, digits: int) -> str:
    k = t.kind
    if t.is_direct:
        what = f"{k.payer} -> {k.payee} {format_amount(k.amount, digits)}"
    else:
        shares = ", ".join(f"{p} {format_amount(s, digits)}" for p, s in k.shares.items())
        what = f"{k.payer} paid {format_amount(k.total, digits)} for {shares}"
    status = "" if t.active else "  (undone)"
    desc = f"  {t.description}" if t.description else ""
    return f"{t.id}  {t.timestamp.astimezone():%Y-%m-%d %H:%M}  {what}{desc}{status}"


def execute(args: argparse.Namespace, settings: Settings) -> None:
    digits = settings.minor_digits
    out = sys.stdout

    if args.command == "new":
        if os.path.exists(args.path) and not args.force:
            raise LedgerFileError(f"{args.path} already exists (use --force to overwrite)")
        names = args.names or settings.default_people
        if not names:
            raise ValueError("no people given and no default people configured")
        save_ledger(Ledger(names), args.path)
        logger.info("created ledger %s with %d people", args.path, len(names))
        return

    ledger = load_ledger(args.path)

    if args.command == "add-person":
        ledger.add_person(args.name)
        save_ledger(ledger, args.path)
    elif args.command == "add-direct":
        time = parse_datetime(args.time) if args.time else None
        tid = ledger.add_direct_payment(args.payer, args.payee, parse_amount(args.amount, digits),
                                        args.description, time)
        save_ledger(ledger, args.path)
        print(tid, file=out)
    elif args.command == "add-expense":
        time = parse_datetime(args.time) if args.time else None
        fixed, even = parse_beneficiaries(args.to, digits)
        tid = ledger.add_split_expense(args.payer, parse_amount(args.amount, digits), even, fixed,
                                       args.description, time)
        save_ledger(ledger, args.path)
        print(tid, file=out)
    elif args.command == "undo":
        ledger.undo(args.id.strip().lower())
        save_ledger(ledger, args.path)
    elif args.command == "list":
        for t in ledger.transactions():
            print(_describe(t, digits), file=out)
    elif args.command == "balances":
        for person, balance in ledger.balances().items():
            sign = "+" if balance > 0 else ""
            print(f"{person}: {sign}{format_amount(balance, digits)}", file=out)
    elif args.command == "summary":
        summary = ledger.summary(args.start, args.end)
        print(f"{'person':<16}{'paid':>12}{'consumed':>12}{'sent':>12}{'received':>12}{'net':>12}", file=out)
        for person, s in summary.items():
            cols = "".join(f"{format_amount(s[k], digits):>12}"
                           for k in ("paid", "consumed", "sent", "received", "net"))
            print(f"{person:<16}{cols}", file=out)
    elif args.command == "verify":
        ledger.verify()
        print(f"OK: {len(ledger.transactions())} transactions, balances sum to zero", file=out)
    elif args.command == "resolve":
        transfers = ledger.resolve()
        for payer, payee, amount in transfers:
            print(f"{payer} -> {payee}: {format_amount(amount, digits)}", file=out)
        if not transfers:
            print("All settled", file=out)
        if args.apply and transfers:
            with ledger.lock:
                for payer, payee, amount in transfers:
                    ledger.add_direct_payment(payer, payee, amount, "Settlement")
                ledger.verify()
            save_ledger(ledger, args.path)
    elif args.command == "export-csv":
        export_transactions_to_csv(ledger.transactions(), args.file)
    elif args.command == "import-csv":
        imported = [t for t in import_transactions_from_csv(args.file) if t.active]
        with ledger.lock:
            for t in imported:
                ledger.append(t.kind, t.description, t.timestamp)
        save_ledger(ledger, args.path)
        print(f"imported {len(imported)} transactions", file=out)
    elif args.command == "export-excel":
        export_excel(ledger, args.file, args.start, args.end, digits)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the command line"""
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings()
        logging.basicConfig(
            level=getattr(logging, settings.log_level, logging.WARNING),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        execute(args, settings)
    except (LedgerError, LedgerFileError, ValueError, OSError) as ex:
        logger.debug("%s failed", args.command, exc_info=True)
        print(f"Error: {ex}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Configuration and data loading/saving for SplitLedger
"""
from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from errors import LedgerError
from ledger import Ledger
from models import DirectPayment, Expense, Transaction
from utils import app_dir

logger = logging.getLogger(__name__)

LEDGER_VERSION = 1


class LedgerFileError(Exception):
    """Ledger, settings or people file is missing, unreadable or malformed"""


@dataclass
class Settings:
    log_level: str = "WARNING"
    minor_digits: int = 2  # e.g. 2 for cents
    default_people: List[str] = field(default_factory=list)


def load_people(path: str) -> List[str]:
    """Load people list from JSON file"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return [str(p) for p in data.get("people", [])]
    except FileNotFoundError:
        return []
    except (ValueError, TypeError, AttributeError) as ex:
        raise LedgerFileError(f"invalid people file {path}: {ex}") from ex


def load_settings(base: Optional[str] = None) -> Settings:
    """
    Load settings from settings.json and people.json in the app directory.
    SPLITLEDGER_LOG_LEVEL overrides the configured log level.
    """
    base = base or app_dir()
    settings = Settings()
    path = os.path.join(base, "settings.json")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        settings.log_level = str(data.get("log_level", settings.log_level))
        settings.minor_digits = int(data.get("minor_digits", settings.minor_digits))
    except FileNotFoundError:
        pass
    except (ValueError, TypeError, AttributeError) as ex:
        raise LedgerFileError(f"invalid settings file {path}: {ex}") from ex
    settings.default_people = load_people(os.path.join(base, "people.json"))
    settings.log_level = os.environ.get("SPLITLEDGER_LOG_LEVEL", settings.log_level).upper()
    return settings


def get_default_ledger(settings: Optional[Settings] = None) -> Ledger:
    """Create an empty ledger with the configured default people"""
    settings = settings or load_settings()
    return Ledger(settings.default_people)


def transaction_to_dict(t: Transaction) -> dict:
    d = {
        "id": t.id,
        "sequence": t.sequence,
        "timestamp": t.timestamp.isoformat(),
        "description": t.description,
        "active": t.active,
    }
    k = t.kind
    if isinstance(k, DirectPayment):
        d.update(kind="direct", payer=k.payer, payee=k.payee, amount=k.amount)
    else:
        d.update(kind="expense", payer=k.payer, total=k.total, shares=dict(k.shares))
    return d


def dict_to_transaction(d: dict) -> Transaction:
    if d["kind"] == "direct":
        kind = DirectPayment(d["payer"], d["payee"], d["amount"])
    elif d["kind"] == "expense":
        kind = Expense(d["payer"], d["total"], dict(d["shares"]))
    else:
        raise ValueError(f"unknown transaction kind: {d['kind']!r}")
    return Transaction(
        id=str(d["id"]),
        sequence=int(d["sequence"]),
        kind=kind,
        timestamp=datetime.fromisoformat(d["timestamp"]),
        description=d.get("description", ""),
        active=bool(d.get("active", True)),
    )


def ledger_to_dict(ledger: Ledger) -> dict:
    """Convert Ledger object to dictionary for JSON serialization"""
    with ledger.lock:
        return {
            "version": LEDGER_VERSION,
            "people": ledger.people,
            "transactions": [transaction_to_dict(t) for t in ledger.transactions()],
        }


def dict_to_ledger(d: dict) -> Ledger:
    """Convert dictionary from JSON to Ledger object, keeping transaction ids"""
    version = d.get("version", LEDGER_VERSION)
    if version != LEDGER_VERSION:
        raise ValueError(f"unsupported ledger version: {version}")
    transactions = [dict_to_transaction(t) for t in d.get("transactions", [])]
    return Ledger.restore(d.get("people", []), transactions)


def load_ledger(path: str) -> Ledger:
    """Read a ledger file written by save_ledger"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        ledger = dict_to_ledger(data)
    except FileNotFoundError:
        raise LedgerFileError(f"ledger file not found: {path}") from None
    except (ValueError, KeyError, TypeError, AttributeError, LedgerError) as ex:
        raise LedgerFileError(f"invalid ledger file {path}: {ex}") from ex
    logger.debug("loaded ledger %s (%d people, %d transactions)",
                 path, len(ledger.people), len(ledger.transactions()))
    return ledger


def save_ledger(ledger: Ledger, path: str) -> None:
    """Write the ledger as JSON, replacing the file atomically"""
    data = ledger_to_dict(ledger)
    tmp = f"{path}.tmp"
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, path)
    except OSError as ex:
        raise LedgerFileError(f"could not write ledger file {path}: {ex}") from ex
    logger.debug("saved ledger %s (%d transactions)", path, len(data["transactions"]))

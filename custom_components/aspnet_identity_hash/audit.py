"""CSV audit log of legacy hash imports, removals and migrations."""

from __future__ import annotations

import csv
import os
from datetime import datetime

from .const import AUDIT_DIR, DOMAIN

AUDIT_HEADER = ["Time", "User", "Action", "Details"]

ACTION_MIGRATED = "migrated"
ACTION_IMPORT_HASH = "import_hash"
ACTION_DELETE_HASH = "delete_hash"


def audit_log_path(config_dir: str, ts: datetime) -> str:
    return os.path.join(config_dir, DOMAIN, AUDIT_DIR, f"migrations_{ts.year}.csv")


def write_audit_log(
    config_dir: str, ts: datetime, actor: str, action: str, details: str
) -> None:
    """Append a row to the yearly audit file. Blocking.

    Identical rows within the same minute are written once.
    """
    path = audit_log_path(config_dir, ts)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    rows: list[list[str]] = []
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8", newline="") as csvfile:
            rows = list(csv.reader(csvfile, delimiter=";"))
    if not rows:
        rows = [list(AUDIT_HEADER)]
    key_time = ts.strftime("%Y-%m-%dT%H:%M")
    row = [key_time, actor, action, details]
    if len(rows) > 1 and rows[-1] == row:
        return
    rows.append(row)
    with open(path, "w", encoding="utf-8", newline="") as csvfile:
        writer = csv.writer(csvfile, delimiter=";", quoting=csv.QUOTE_MINIMAL)
        writer.writerows(rows)

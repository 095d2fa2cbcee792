"""
Reports and CSV exports for a clean operation.

- actions_frame: one row per executed step (counts before/after per field)
- validation_frame: one row per validated entry
- recipients CSV: three lines (To, CC, BCC), entries joined with ';'
- invalid addresses CSV: one line of rejected entries joined with ';'

The CSV line formats match the add-in's "download" buttons.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Union

import pandas as pd

from .pipeline.state import FIELDS, ActionRecord

ActionLike = Union[ActionRecord, Mapping[str, Any]]

ACTION_COLUMNS = [
    "step", "processed", "removed", "skipped",
    "to_before", "cc_before", "bcc_before",
    "to_after", "cc_after", "bcc_after",
]
VALIDATION_COLUMNS = ["step_index", "field", "address", "email", "status", "message", "suggestion"]


def _as_dict(action: ActionLike) -> Dict[str, Any]:
    return action.to_dict() if isinstance(action, ActionRecord) else dict(action)


def actions_frame(actions: Iterable[ActionLike]) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = []
    for a in map(_as_dict, actions):
        row: Dict[str, Any] = {
            "step": a["type"],
            "processed": int(a.get("processed", 0)),
            "removed": int(a.get("removed", 0)),
            "skipped": bool(a.get("skipped", False)),
        }
        for name in FIELDS:
            row[f"{name}_before"] = len(a["input"][name])
            row[f"{name}_after"] = len(a["output"][name])
        rows.append(row)
    return pd.DataFrame(rows, columns=ACTION_COLUMNS)


def validation_frame(actions: Iterable[ActionLike]) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = []
    for i, a in enumerate(map(_as_dict, actions)):
        for r in a.get("validationResults", []):
            rows.append({
                "step_index": i,
                "field": r.get("field", ""),
                "address": r["address"],
                "email": r["email"],
                "status": r["status"],
                "message": "; ".join(r.get("warnings", [])),
                "suggestion": (r.get("suggestions") or [""])[0],
            })
    return pd.DataFrame(rows, columns=VALIDATION_COLUMNS)


def recipients_csv(lists: Mapping[str, Iterable[str]]) -> str:
    return "\n".join(";".join(lists.get(name, [])) for name in FIELDS)


def invalid_csv(invalid: Iterable[str]) -> str:
    return ";".join(invalid)


def write_reports(*, out_dir: Path, response: Mapping[str, Any], timestamped: bool = True) -> Path:
    """
    Write actions.csv, validation.csv, recipients.csv and, when any entry was
    rejected, invalid_addresses.csv. ``response`` is a wire-form clean result.
    """
    if timestamped:
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        out_dir = Path(out_dir) / f"clearsend_report_{ts}"
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    actions = response.get("actions", [])
    actions_frame(actions).to_csv(out_dir / "actions.csv", index=False)
    validation_frame(actions).to_csv(out_dir / "validation.csv", index=False)
    (out_dir / "recipients.csv").write_text(recipients_csv(response), encoding="utf-8")

    invalid = response.get("invalid") or []
    if invalid:
        (out_dir / "invalid_addresses.csv").write_text(invalid_csv(invalid), encoding="utf-8")

    return out_dir

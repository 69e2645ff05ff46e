"""
Minimal web surface for spreadsheets: GET /api/lca runs one SCOPEGREEN lookup and
returns the one-row table as JSON, or as CSV for IMPORTDATA-style pulls.
The endpoint always answers 200; failures are message cells in the table.
"""

import csv
import io
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv
load_dotenv(PROJECT_ROOT / ".env")

from fastapi import FastAPI, Header
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from api.scopegreen import scopegreen

logger = logging.getLogger(__name__)

# Request URL, status and outcome logs from the lookup pipeline
for _log in ("api.scopegreen", "ui.app"):
    logging.getLogger(_log).setLevel(logging.INFO)


class LcaTable(BaseModel):
    rows: list[list]


def _to_csv(table: list[list]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerows(table)
    return buf.getvalue()


app = FastAPI(title="SCOPEGREEN LCA lookup")


@app.get("/api/debug/scopegreen")
def debug_scopegreen_key():
    """
    Verify SCOPEGREEN_API_KEY is loaded. Returns configured=true/false and a safe key prefix.
    Do not use in production if you want to hide whether a key is set.
    """
    from api.scopegreen.client import get_api_key, get_base_url

    key = get_api_key()
    return {
        "configured": bool(key),
        "key_prefix": (key[:6] + "…") if key and len(key) > 6 else ("…" if key else None),
        "key_length": len(key) if key else 0,
        "base_url": get_base_url(),
    }


@app.get("/api/lca")
def lookup_lca(
    item_name: str | None = None,
    year: str | None = None,
    geography: str | None = None,
    metric: str | None = None,
    domain: str | None = None,
    num_matches: str | None = None,
    mode: str | None = None,
    not_english: str | None = None,
    unit: str | None = None,
    user: str | None = None,
    format: str = "json",
    x_user_id: str | None = Header(default=None),
):
    """
    Run one lookup. Parameters are forwarded as received (no validation); the cache
    scope is the `user` query parameter, else the X-User-Id header, else "default".
    Returns { rows: [[...]] }, or text/csv when format=csv.
    """
    scope = (user or x_user_id or "").strip() or None
    table = scopegreen(
        item_name,
        year,
        geography,
        metric,
        domain,
        num_matches,
        mode,
        not_english,
        unit,
        user=scope,
    )
    if (format or "").strip().lower() == "csv":
        return PlainTextResponse(_to_csv(table), media_type="text/csv")
    return LcaTable(rows=table)

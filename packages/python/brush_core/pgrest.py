from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable

import httpx
from postgrest.exceptions import APIError as PostgrestAPIError

from .errors import DomainError, StoreError

# Errors a PostgREST round-trip can raise: rejected requests and transport failures.
PGREST_ERRORS = (PostgrestAPIError, httpx.HTTPError)

# Rows requested per `.range()` page; matches Supabase's default max-rows.
PAGE_SIZE = 1000


def ensure_ts(value) -> datetime | None:
    """Normalize timestamps coming from Postgres/Supabase into tz-aware datetimes."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        # Supabase returns ISO strings that may end with `Z`; make them explicit UTC.
        normalized = raw.replace("Z", "+00:00") if raw.endswith("Z") else raw
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def map_pgrest(
    e: Exception, what: str, error_cls: type[DomainError] = StoreError
) -> DomainError:
    if isinstance(e, PostgrestAPIError):
        code = getattr(e, "code", None) or "unknown"
        return error_cls(f"{what} rejected ({code}): {getattr(e, 'message', e)}")
    return error_cls(f"{what} unreachable: {e}")


def fetch_all(build_query: Callable[[], Any], *, page_size: int = PAGE_SIZE) -> list[dict]:
    """
    Read every row of an ordered query, one `.range()` page at a time.

    `build_query` returns a fresh, filtered and ordered builder per page.
    PostgREST silently caps a response at its max-rows setting, so a short
    page does not mean the end; only an empty page ends the scan.
    """
    rows: list[dict] = []
    start = 0
    while True:
        res = build_query().range(start, start + page_size - 1).execute()
        page = getattr(res, "data", None) or []
        if not page:
            return rows
        rows.extend(page)
        start += len(page)

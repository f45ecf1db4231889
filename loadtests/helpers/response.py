"""Response error extraction for load test observability.

Storefront API errors all share one shape:
{"error": "<category>", "message": "...", "details": {"field": ["msg", ...]}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a human-readable error message from an API error response.

    Returns a compact string suitable for Locust failure messages and log lines.
    """
    try:
        body = response.json()
    except ValueError:
        # Not JSON: return raw text, truncated
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if not isinstance(body, dict) or "error" not in body:
        return str(body)[:300]

    summary = f"{body['error']}: {body.get('message', '')}".rstrip(": ")
    details = body.get("details") or {}
    if isinstance(details, dict) and details:
        fields = " | ".join(
            f"{key}: {', '.join(map(str, value)) if isinstance(value, list) else value}"
            for key, value in details.items()
        )
        return f"{summary} ({fields})"
    return summary

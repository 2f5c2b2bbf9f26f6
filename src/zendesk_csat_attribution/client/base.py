"""Base ZendeskClient class and core utilities."""
from typing import Any, Dict
import json
import urllib.request
import urllib.parse
import urllib.error
import base64

from zenpy import Zenpy
from zendesk_csat_attribution.exceptions import (
    ZendeskAPIError,
    ZendeskNetworkError,
    ZendeskNotFoundError,
    ZendeskRateLimitError,
)


# Helper: single-attempt urllib request; non-2xx responses become API errors
# carrying the status code and body so callers can log them and move on
def _urlopen(req):
    try:
        return urllib.request.urlopen(req)
    except urllib.error.HTTPError as e:
        error_body = e.read().decode() if e.fp else "No response body"
        status_code = getattr(e, "code", None)
        if status_code == 404:
            error_cls = ZendeskNotFoundError
        elif status_code == 429:
            error_cls = ZendeskRateLimitError
        else:
            error_cls = ZendeskAPIError
        raise error_cls(
            f"HTTP Error: {e.code} - {e.reason}",
            status_code=status_code,
            response_body=error_body,
        )
    except urllib.error.URLError as e:
        raise ZendeskNetworkError(f"Network Error: {str(e)}")


class ZendeskClientBase:
    """Base class for ZendeskClient with core initialization and helpers."""

    def __init__(self, subdomain: str, email: str, token: str):
        """
        Initialize the Zendesk client using zenpy lib and direct API.
        """
        # Writes go through zenpy; a zero rate-limit budget makes a 429 fail
        # immediately instead of sleeping and re-sending the update
        self.client = Zenpy(
            subdomain=subdomain,
            email=email,
            token=token,
            ratelimit_budget=0,
        )

        # Reads with sideloaded users go through the direct API
        self.subdomain = subdomain
        self.email = email
        self.base_url = f"https://{subdomain}.zendesk.com/api/v2"
        credentials = f"{email}/token:{token}"
        encoded_credentials = base64.b64encode(credentials.encode()).decode('ascii')
        self.auth_header = f"Basic {encoded_credentials}"

    # Internal helper to GET a path and return parsed JSON
    def _get_json(self, path: str, params: Dict[str, Any] | None = None) -> Dict[str, Any]:
        query = urllib.parse.urlencode(params or {})
        url = f"{self.base_url}{path}{('?' + query) if query else ''}"
        return self._get_json_url(url)

    # Internal helper to GET a fully-qualified URL (e.g., next_page) and return parsed JSON
    def _get_json_url(self, url: str) -> Dict[str, Any]:
        req = urllib.request.Request(url)
        req.add_header('Authorization', self.auth_header)
        req.add_header('Content-Type', 'application/json')
        with _urlopen(req) as response:
            return json.loads(response.read().decode('utf-8'))

    def _get_paged(self, path: str, items_key: str, params: Dict[str, Any] | None = None) -> tuple[list[dict], list[dict]]:
        """Follow ``next_page`` links and collect items plus sideloaded users.

        Returns (items, users).
        """
        items: list[dict] = []
        users: list[dict] = []
        seen_pages: set[str] = set()

        data = self._get_json(path, params)
        while True:
            items.extend(data.get(items_key) or [])
            users.extend(data.get('users') or [])
            next_url = data.get('next_page')
            if not next_url or next_url in seen_pages:
                break
            seen_pages.add(next_url)
            data = self._get_json_url(next_url)

        return items, users

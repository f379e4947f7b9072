# storefront/data/rest_store.py
import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

import requests

from storefront.data.store import DataStore, Embed, Filters, Ordering, Row
from storefront.domain.errors import NotFound, RemoteFailure
from storefront.utils.retry import http_retry
from storefront.utils.settings import SUPABASE_URL, SUPABASE_ANON_KEY, HTTP_TIMEOUT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _encode(value: Any):
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or str(body)
    return str(body)


class RestDataStore(DataStore):
    """
    DataStore over a PostgREST endpoint (the table API of the hosted backend).

    GET, PATCH and DELETE are retried on transport errors. POST is not, a
    retried insert could create a second cart row.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        token_provider: Callable[[], Optional[str]] | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or SUPABASE_URL).rstrip("/") + "/rest/v1"
        self.api_key = api_key or SUPABASE_ANON_KEY
        self.token_provider = token_provider
        self.timeout = timeout or HTTP_TIMEOUT_SECONDS
        self.http = session or requests.Session()

    def _headers(self, prefer: str | None = None) -> Dict[str, str]:
        # row level security needs the user's token, anonymous reads use the anon key
        token = (self.token_provider() if self.token_provider else None) or self.api_key
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    @staticmethod
    def _params(
        filters: Optional[Filters] = None,
        order: Optional[Ordering] = None,
        embed: Optional[Embed] = None,
        select: bool = True,
    ) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if select:
            params["select"] = "*" if embed is None else f"*,{embed.name}:{embed.table}(*)"
        for key, value in (filters or {}).items():
            params[key] = f"eq.{value}"
        if order:
            params["order"] = f"{order.field}.{'desc' if order.descending else 'asc'}"
        return params

    @http_retry()
    def _request_with_retry(self, method: str, url: str, **kwargs) -> requests.Response:
        return self.http.request(method, url, timeout=self.timeout, **kwargs)

    def _send(
        self,
        method: str,
        table: str,
        *,
        prefer: str | None = None,
        retry: bool = True,
        **kwargs,
    ) -> requests.Response:
        url = f"{self.base_url}/{table}"
        logger.info(f"RestDataStore {method} {url}")

        try:
            if retry:
                resp = self._request_with_retry(method, url, headers=self._headers(prefer), **kwargs)
            else:
                resp = self.http.request(
                    method, url, headers=self._headers(prefer), timeout=self.timeout, **kwargs
                )
        except requests.RequestException as e:
            raise RemoteFailure(f"{method} {table} failed: {e}") from e

        if resp.status_code == 404:
            raise NotFound(f"{method} {table}: {_error_message(resp)}")
        if resp.status_code >= 400:
            raise RemoteFailure(
                f"{method} {table} returned {resp.status_code}: {_error_message(resp)}"
            )
        return resp

    @staticmethod
    def _rows(resp: requests.Response, table: str) -> List[Row]:
        try:
            rows = resp.json(parse_float=Decimal)
        except ValueError as e:
            raise RemoteFailure(f"Malformed response from {table}: {e}") from e
        if not isinstance(rows, list):
            raise RemoteFailure(f"Expected a list of rows from {table}")
        return rows

    def query(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order: Optional[Ordering] = None,
        embed: Optional[Embed] = None,
    ) -> List[Row]:
        resp = self._send("GET", table, params=self._params(filters, order, embed))
        return self._rows(resp, table)

    def insert(self, table: str, row: Row) -> Row:
        resp = self._send(
            "POST",
            table,
            prefer="return=representation",
            retry=False,
            params={"select": "*"},
            data=json.dumps(row, default=_encode),
        )
        rows = self._rows(resp, table)
        return rows[0] if rows else dict(row)

    def update(self, table: str, patch: Row, filters: Filters) -> None:
        self._send(
            "PATCH",
            table,
            prefer="return=minimal",
            params=self._params(filters, select=False),
            data=json.dumps(patch, default=_encode),
        )

    def delete(self, table: str, filters: Filters) -> None:
        self._send(
            "DELETE",
            table,
            prefer="return=minimal",
            params=self._params(filters, select=False),
        )

"""HTTP client wrapper for the remote store's REST interface."""

from typing import Any

import requests

from .auth import StoreAuth

Row = dict[str, Any]


class StoreAPIError(Exception):
    """Exception raised for remote store errors."""

    def __init__(self, message: str, status_code: int | None = None, response: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response = response


def _eq_filters(match: dict[str, Any] | None) -> list[tuple[str, str]]:
    """Encode equality filters as ``column=eq.value`` parameters."""
    return [(column, f"eq.{value}") for column, value in (match or {}).items()]


class StoreClient:
    """Blocking client for one remote store project.

    Each public method is a single round trip; there is no batching and no
    retry.
    """

    def __init__(self, auth: StoreAuth | None = None, timeout: float = 30.0) -> None:
        """Initialize client with authentication.

        Args:
            auth: StoreAuth instance (creates one from env if not provided)
            timeout: Per-request timeout in seconds
        """
        self.auth = auth or StoreAuth()
        self.timeout = timeout
        self.session = requests.Session()

    def _request(
        self,
        method: str,
        table: str,
        query_params: list[tuple[str, str]] | None = None,
        json_data: Any = None,
        prefer: str | None = None,
    ) -> Any:
        """Make an authenticated request against a collection.

        Args:
            method: HTTP method
            table: Collection name
            query_params: Optional query parameters
            json_data: Optional JSON body data
            prefer: Optional Prefer header

        Returns:
            Parsed JSON response (None for empty bodies)

        Raises:
            StoreAPIError: On API or transport errors
        """
        url = self.auth.get_table_url(table, query_params)
        headers = self.auth.get_headers(prefer=prefer)

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=headers,
                json=json_data if method in ("POST", "PATCH") else None,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StoreAPIError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            error_msg = f"API error {response.status_code}: {response.text[:500]}"
            raise StoreAPIError(error_msg, response.status_code, response)

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise StoreAPIError(f"Invalid JSON from {table}: {e}", response.status_code, response) from e

    # -------------------------------------------------------------------------
    # Collection Operations
    # -------------------------------------------------------------------------

    def select(
        self,
        table: str,
        match: dict[str, Any] | None = None,
        order: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> list[Row]:
        """Read rows from a collection.

        Args:
            table: Collection name
            match: Optional equality filters (column -> value)
            order: Optional column to order by
            ascending: Sort direction when ``order`` is given
            limit: Optional maximum number of rows

        Returns:
            List of row dictionaries
        """
        params = [("select", "*")] + _eq_filters(match)
        if order:
            params.append(("order", f"{order}.{'asc' if ascending else 'desc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))

        rows = self._request("GET", table, params)
        return rows or []

    def insert(self, table: str, rows: list[Row]) -> list[Row]:
        """Insert rows and return them as stored (with server-assigned ids)."""
        result = self._request("POST", table, json_data=rows, prefer="return=representation")
        return result or []

    def update(self, table: str, values: Row, match: dict[str, Any]) -> None:
        """Update rows matching ``match`` with ``values``."""
        self._request("PATCH", table, _eq_filters(match), json_data=values)

    def delete(self, table: str, match: dict[str, Any]) -> None:
        """Delete rows matching ``match``."""
        self._request("DELETE", table, _eq_filters(match))

    # -------------------------------------------------------------------------
    # Health Check
    # -------------------------------------------------------------------------

    def verify_connection(self) -> bool:
        """Verify API connectivity and authentication.

        Returns:
            True if the settings collection answered

        Raises:
            StoreAPIError: On connection or auth failure
        """
        self.select("settings", limit=1)
        return True

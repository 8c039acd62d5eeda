"""API key authentication for the remote store."""

import os
from urllib.parse import urlencode, urlparse

from dotenv import load_dotenv


class StoreAuth:
    """Holds the remote store endpoint and API key and builds request headers."""

    REST_PREFIX = "/rest/v1"
    REALTIME_PATH = "/realtime/v1/websocket"

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
    ) -> None:
        """Initialize authentication with credentials.

        Args:
            url: Store base URL (or load from SUPABASE_URL env)
            api_key: Anonymous API key (or load from SUPABASE_ANON_KEY env)
        """
        load_dotenv()

        self.url = (url or os.getenv("SUPABASE_URL", "")).rstrip("/")
        self.api_key = api_key or os.getenv("SUPABASE_ANON_KEY", "")

        if not self.url or not self.api_key:
            raise ValueError(
                "Missing store credentials. Set SUPABASE_URL and "
                "SUPABASE_ANON_KEY environment variables or pass them directly."
            )

    def get_headers(self, prefer: str | None = None) -> dict[str, str]:
        """Generate headers for a REST request.

        Args:
            prefer: Optional value for the Prefer header
                (e.g., "return=representation")

        Returns:
            Dictionary of headers including apikey and Authorization
        """
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def get_table_url(self, table: str, query_params: list[tuple[str, str]] | None = None) -> str:
        """Build the full REST URL for a collection.

        Args:
            table: Collection name (e.g., "transactions")
            query_params: Optional ordered query parameters

        Returns:
            Full URL string
        """
        url = f"{self.url}{self.REST_PREFIX}/{table}"
        if query_params:
            url += "?" + urlencode(query_params)
        return url

    def get_realtime_url(self) -> str:
        """Build the websocket URL for the change stream."""
        parsed = urlparse(self.url)
        scheme = "ws" if parsed.scheme == "http" else "wss"
        query = urlencode({"apikey": self.api_key, "vsn": "1.0.0"})
        return f"{scheme}://{parsed.netloc}{parsed.path}{self.REALTIME_PATH}?{query}"

    def verify_credentials(self) -> bool:
        """Verify that credentials are set (does not test connectivity)."""
        return bool(self.url and self.api_key)

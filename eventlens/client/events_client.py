"""HTTP client for the events API."""
import httpx
import structlog
from ..config import Settings
from ..errors import QueryFailed, TimeoutFailure
from ..event_models import Event, EventPage, QueryFilter

log = structlog.get_logger()


class EventsClient:
    """
    Async client for ``GET /api/events``.

    Failures are raised as the same ``QueryFailed``/``TimeoutFailure``
    types the server uses, with the server's error message when it sent one.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the events client.

        Args:
            base_url: Root URL of the EventLens service
            timeout: Deadline for each request in seconds
            client: Pre-built httpx client (e.g. bound to an ASGI transport)
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EventsClient":
        return cls(settings.API_BASE_URL, timeout=settings.CLIENT_TIMEOUT_SECONDS)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()

    @staticmethod
    def _params(query: QueryFilter) -> dict:
        params = {
            "database": query.store.value,
            "limit": query.limit,
            "offset": query.offset,
        }
        if query.window:
            params["timeRange"] = query.window
        if query.content:
            params["content"] = query.content
        if query.topic:
            params["topic"] = query.topic
        return params

    async def fetch_events(self, query: QueryFilter) -> list[Event]:
        """Fetch one page of events, dropping the paging metadata."""
        page = await self.fetch_page(query)
        return page.events

    async def fetch_page(self, query: QueryFilter) -> EventPage:
        """
        Fetch one page of events.

        The returned limit is the one the server applied, which is lower than
        the requested one when the server caps the page size.

        Raises:
            TimeoutFailure: If the request exceeded the client timeout
            QueryFailed: On a transport error or a non-2xx response
        """
        store = query.store.value
        try:
            response = await self._client.get("/api/events", params=self._params(query))
        except httpx.TimeoutException as e:
            log.warning("client.timeout", store=store)
            raise TimeoutFailure(store, "request timed out") from e
        except httpx.HTTPError as e:
            log.warning("client.request_failed", store=store, error=str(e))
            raise QueryFailed(store, str(e) or type(e).__name__) from e

        if response.is_error:
            try:
                message = response.json().get("error") or response.text
            except ValueError:
                message = response.text
            log.warning("client.error_response", store=store, status=response.status_code, error=message)
            raise QueryFailed(store, message or f"HTTP {response.status_code}")

        data = response.json()
        applied = (data.get("params") or {}).get("limit") or query.limit
        if applied != query.limit:
            log.debug("client.limit_capped", requested=query.limit, applied=applied)
        return EventPage(events=[Event(**item) for item in data.get("events") or []], limit=applied)

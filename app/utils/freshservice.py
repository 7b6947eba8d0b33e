import logging

import httpx

from app.config import settings
from app.utils.exceptions import ExternalServiceException

logger = logging.getLogger(__name__)


class FreshserviceClient:
    """
    Thin client for the Freshservice v2 REST API.

    Authenticates with HTTP basic auth (`api_key:X`). Every failure (network error,
    timeout, non-2xx response) is raised as ExternalServiceException so callers can
    decide whether to retry.
    """

    def __init__(
        self,
        domain: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.domain = domain or settings.FRESHSERVICE_DOMAIN
        self.api_key = api_key or settings.FRESHSERVICE_API_KEY
        self.timeout = timeout if timeout is not None else settings.FRESHSERVICE_TIMEOUT
        self.base_url = f"https://{self.domain}/api/v2"
        self._transport = transport

    def _client(self) -> httpx.Client:
        if not self.domain or not self.api_key:
            raise ExternalServiceException("Freshservice integration is not configured")
        return httpx.Client(
            base_url=self.base_url,
            auth=(self.api_key, "X"),
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
            transport=self._transport,
        )

    def _request(self, method: str, path: str, json: dict | None = None) -> dict:
        try:
            with self._client() as client:
                response = client.request(method, path, json=json)
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Freshservice {method} {path} timed out: {e}")
            raise ExternalServiceException("Freshservice request timed out")
        except httpx.HTTPStatusError as e:
            logger.error(f"Freshservice {method} {path} failed: "
                         f"{e.response.status_code} {e.response.text}")
            raise ExternalServiceException(
                f"Freshservice rejected the request ({e.response.status_code})",
                details=[{"status": e.response.status_code, "body": e.response.text[:500]}],
            )
        except httpx.HTTPError as e:
            logger.error(f"Freshservice {method} {path} error: {e}")
            raise ExternalServiceException(f"Freshservice is unreachable: {e}")
        except ValueError:
            raise ExternalServiceException("Freshservice returned an invalid response")

    # ─── Tickets ──────────────────────────────────────────────────────────────
    def get_tickets(self, page: int = 1, per_page: int = 30) -> list[dict]:
        data = self._request("GET", f"/tickets?page={page}&per_page={per_page}")
        return data.get("tickets", [])

    def get_ticket(self, ticket_id: int | str) -> dict:
        data = self._request("GET", f"/tickets/{ticket_id}")
        return data.get("ticket", data)

    def create_ticket(self, ticket_data: dict) -> dict:
        data = self._request("POST", "/tickets", json=ticket_data)
        return data.get("ticket", data)

    def update_ticket(self, ticket_id: int | str, update_data: dict) -> dict:
        data = self._request("PUT", f"/tickets/{ticket_id}", json=update_data)
        return data.get("ticket", data)


freshservice_client = FreshserviceClient()

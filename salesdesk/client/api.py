from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from salesdesk.client.token_store import TokenStore

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api/v1"
DEFAULT_ERROR_MESSAGE = "Something went wrong in server."


class NetworkError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except json.JSONDecodeError:
        return response.text or DEFAULT_ERROR_MESSAGE
    if isinstance(data, dict):
        for key in ("error", "detail", "msg"):
            if isinstance(data.get(key), str):
                return data[key]
    return DEFAULT_ERROR_MESSAGE


class ApiClient:
    """REST client used by the grid and form views.

    ``http`` may be any ``httpx.Client``; tests pass FastAPI's TestClient.
    Writes carry the bearer token from ``token_store``.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        token_store: Optional[TokenStore] = None,
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store or TokenStore()
        self._owns_http = http is None
        self._http = http or httpx.Client(timeout=timeout)

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *_exc) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def _url(self, resource: str, record_id: Any = None) -> str:
        url = f"{self.base_url}/{resource}"
        if record_id is not None:
            url = f"{url}/{quote(str(record_id), safe='')}"
        return url

    def _request(self, method: str, url: str, *, payload: Any = None, auth: bool = False) -> Any:
        headers = {"Content-Type": "application/json"}
        token = self.token_store.get()
        if auth and token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = self._http.request(method, url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("request failed method=%s url=%s error=%s", method, url, exc)
            raise NetworkError(str(exc) or DEFAULT_ERROR_MESSAGE) from exc

        if not response.is_success:
            message = _error_message(response)
            logger.warning("request rejected method=%s url=%s status=%s", method, url, response.status_code)
            raise NetworkError(message, status_code=response.status_code)

        try:
            return response.json()
        except json.JSONDecodeError as exc:
            raise NetworkError("Invalid response from server.", status_code=response.status_code) from exc

    # auth

    def login(self, username: str, password: str) -> Dict[str, Any]:
        result = self._request("POST", self._url("users/login"), payload={"username": username, "password": password})
        if result.get("auth"):
            self.token_store.set(result["msg"])
        return result

    def logout(self) -> None:
        self.token_store.clear()

    # resources

    def list(self, resource: str) -> List[Dict[str, Any]]:
        return self._request("GET", self._url(resource))

    def create(self, resource: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", self._url(resource), payload=payload, auth=True)

    def update(self, resource: str, record_id: Any, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", self._url(resource, record_id), payload=payload, auth=True)

    def delete(self, resource: str, record_id: Any) -> Dict[str, Any]:
        return self._request("DELETE", self._url(resource, record_id), auth=True)

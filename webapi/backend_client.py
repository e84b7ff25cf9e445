"""
HTTP client for the backend service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

import requests
from pydantic import ValidationError

from webapi.schemas import BackendData


class BackendUnavailable(RuntimeError):
    """The backend could not be reached or returned an unusable payload."""


class BackendClient(Protocol):
    def get_data(self) -> Optional[BackendData]:
        ...


@dataclass
class InMemoryBackendClient:
    """Test double returning a fixed payload."""

    data: Optional[BackendData] = field(default_factory=lambda: BackendData(x=0, y=0))

    def get_data(self) -> Optional[BackendData]:
        return self.data


@dataclass
class HttpBackendClient:
    """Calls ``GET /data`` on the backend service."""

    base_url: str
    timeout: float = 5.0

    def __post_init__(self):
        self.session = requests.Session()

    def get_data(self) -> Optional[BackendData]:
        url = f"{self.base_url.rstrip('/')}/data"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise BackendUnavailable(f"Backend request to {url} failed: {exc}") from exc
        if payload is None:
            return None
        try:
            return BackendData.model_validate(payload)
        except ValidationError as exc:
            raise BackendUnavailable(f"Unexpected backend payload: {exc}") from exc

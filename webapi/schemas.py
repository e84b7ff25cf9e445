"""
Pydantic schemas for the web API.
"""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict


class BackendData(BaseModel):
    """Payload of the backend service's ``/data`` endpoint."""

    model_config = ConfigDict(extra="ignore")

    x: Optional[int] = None
    y: Optional[int] = None

    def total(self) -> int:
        # Each value defaults to zero independently.
        return (self.x or 0) + (self.y or 0)


class SumResponse(BaseModel):
    sum: int


class IpResponse(BaseModel):
    service_reference: str
    port: str
    ip_address: Optional[str] = None


class AnswerResponse(BaseModel):
    answer: Optional[int] = None
    provisioning: str


class HealthResponse(BaseModel):
    status: str
    checks: Dict[str, str]

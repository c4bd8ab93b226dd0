"""HTTP implementation of the cell gateway against the cellboard service."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from .errors import GatewayError
from .gateway import (
    CellGateway,
    GatewayConfig,
    batch_payload,
    person_from_payload,
    snapshot_from_payload,
)
from .models import GroupSnapshot, MembershipAssignment, Person

logger = logging.getLogger(__name__)


class HttpCellGateway(CellGateway):
    """Talks to the service's JSON envelope API.

    ``session`` is anything with the requests.Session call surface; tests pass
    a FastAPI TestClient.
    """

    def __init__(self, config: Optional[GatewayConfig] = None, session: Any = None):
        self.config = config or GatewayConfig.from_env()
        self.base_url = self.config.base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.config.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.error("gateway_transport_error: %s %s: %s", method, path, exc)
            raise GatewayError(f"{method} {path} failed: {exc}") from exc

        body: Dict[str, Any] = {}
        try:
            body = response.json() or {}
        except ValueError:
            body = {}
        if response.status_code >= 400:
            message = body.get("message") or body.get("detail") or response.text
            raise GatewayError(f"{method} {path} returned {response.status_code}: {message}", status_code=response.status_code)
        if str(body.get("status", "")).upper() != "SUCCESS":
            raise GatewayError(
                f"{method} {path} was rejected: {body.get('message') or 'unknown error'}",
                status_code=response.status_code,
            )
        return body.get("data")

    def load_identity_pool(self, period_year: int) -> List[Person]:
        data = self._request("GET", "/api/members", params={"year": period_year}) or []
        return [person_from_payload(p) for p in data]

    def load_groups(self, period_year: int) -> List[GroupSnapshot]:
        data = self._request("GET", "/api/admin/cells", params={"year": period_year}) or []
        return [snapshot_from_payload(c) for c in data]

    def create_group(
        self,
        name: str,
        period_year: int,
        leader_id: Optional[int] = None,
        co_leader_id: Optional[int] = None,
    ) -> int:
        payload = {"name": name, "year": period_year, "leader_id": leader_id, "co_leader_id": co_leader_id}
        data = self._request("POST", "/api/admin/cells", json=payload)
        return int(data["id"] if isinstance(data, dict) else data)

    def update_group_metadata(self, group_id: int, *, name: Optional[str] = None, period_year: Optional[int] = None) -> None:
        payload: Dict[str, Any] = {}
        if name is not None:
            payload["name"] = name
        if period_year is not None:
            payload["year"] = period_year
        self._request("PATCH", f"/api/admin/cells/{group_id}", json=payload)

    def submit_membership_batch(self, assignments: Sequence[MembershipAssignment]) -> None:
        self._request("PUT", "/api/admin/cells/members/batch", json=batch_payload(assignments))

    def delete_group(self, group_id: int) -> None:
        self._request("DELETE", f"/api/admin/cells/{group_id}")


__all__ = ["HttpCellGateway"]

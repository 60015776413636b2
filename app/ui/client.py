"""
HTTP client and client-side cache used by the Streamlit UI.

The UI never binds widgets straight to server state: it keeps a
MatrixCache of entities keyed by id and replaces entries from the
server's answer after each mutating call.
"""
import logging
import os
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30

# Cell shown for a pair with no stored implementation
DEFAULT_STATUS = "red"
NOT_IMPLEMENTED_NOTE = "Not implemented"


def get_api_base_url() -> str:
    """
    Normalize API base URL from environment variable.

    - Empty env var -> http://localhost:8000 (local dev)
    - Full URL (http:// or https://) -> use as-is
    - Bare hostname -> prepend https://
    """
    raw = os.getenv("API_BASE_URL", "").strip().rstrip("/")

    if not raw:
        return "http://localhost:8000"

    if raw.startswith("http://") or raw.startswith("https://"):
        return raw

    return f"https://{raw}"


class APIError(Exception):
    """Request to the tracker API failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, error_type: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        super().__init__(message)


class TrackerClient:
    """Thin wrapper over the /api endpoints."""

    def __init__(self, base_url: Optional[str] = None, timeout: int = DEFAULT_TIMEOUT):
        self.base_url = (base_url or get_api_base_url()).rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}/api{path}"
        try:
            response = requests.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise APIError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            detail = body.get("detail", response.text) if isinstance(body, dict) else response.text
            # FastAPI request validation returns a list of field errors
            if isinstance(detail, list):
                detail = "; ".join(str(err.get("msg", err)) for err in detail)
            raise APIError(
                str(detail),
                status_code=response.status_code,
                error_type=body.get("error") if isinstance(body, dict) else None,
            )
        return response.json()

    # Items
    def list_items(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/items")

    def get_item(self, item_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/items/{item_id}")

    def create_item(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/items", json=data)

    def update_item(self, item_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/items/{item_id}", json=data)

    def delete_item(self, item_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/items/{item_id}")

    # Controls
    def list_controls(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/controls")

    def get_control(self, control_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/controls/{control_id}")

    def create_control(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/controls", json=data)

    def update_control(self, control_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/controls/{control_id}", json=data)

    def delete_control(self, control_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/controls/{control_id}")

    def reorder_controls(self, ordered_ids: List[int]) -> List[Dict[str, Any]]:
        return self._request("PUT", "/controls/reorder", json={"ordered_ids": ordered_ids})

    # Sub-controls
    def list_sub_controls(self, control_id: Optional[int] = None) -> List[Dict[str, Any]]:
        if control_id is None:
            return self._request("GET", "/sub-controls")
        return self._request("GET", f"/sub-controls/control/{control_id}")

    def get_sub_control(self, sub_control_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/sub-controls/{sub_control_id}")

    def create_sub_control(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/sub-controls", json=data)

    def update_sub_control(self, sub_control_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/sub-controls/{sub_control_id}", json=data)

    def delete_sub_control(self, sub_control_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/sub-controls/{sub_control_id}")

    # Implementation status
    def update_control_status(
        self, item_id: int, control_id: int, status: str, notes: Optional[str] = None
    ) -> Dict[str, Any]:
        return self._request(
            "PUT", f"/implementations/{item_id}/{control_id}", json={"status": status, "notes": notes}
        )

    def update_sub_control_status(
        self, item_id: int, sub_control_id: int, status: str, notes: Optional[str] = None
    ) -> Dict[str, Any]:
        return self._request(
            "PUT",
            f"/sub-control-implementations/{item_id}/{sub_control_id}",
            json={"status": status, "notes": notes},
        )

    # Matrix
    def get_matrix(self) -> Dict[str, Any]:
        return self._request("GET", "/matrix")

    def get_environment_detail(self, item_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/matrix/{item_id}")

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")


def _default_cell() -> Dict[str, Any]:
    return {"status": DEFAULT_STATUS, "notes": NOT_IMPLEMENTED_NOTE}


class MatrixCache:
    """
    Client-side copy of items, controls, sub-controls and matrix cells.

    Every mutation goes through the client first; the cache is only
    updated from what the server returned, so a failed call leaves it as
    it was.
    """

    def __init__(self, client: TrackerClient):
        self.client = client
        self.items: Dict[int, Dict[str, Any]] = {}
        self.controls: Dict[int, Dict[str, Any]] = {}
        self.sub_controls: Dict[int, Dict[str, Any]] = {}
        # item_id -> control_id -> {"status", "notes"}
        self.cells: Dict[int, Dict[int, Dict[str, Any]]] = {}
        self.loaded = False

    # -------------------- Loading --------------------

    def refresh(self) -> None:
        matrix = self.client.get_matrix()
        sub_controls = self.client.list_sub_controls()

        self.controls = {c["id"]: c for c in matrix["controls"]}
        self.items = {}
        self.cells = {}
        for environment in matrix["environments"]:
            environment = dict(environment)
            statuses = environment.pop("controlStatuses", {})
            self.items[environment["id"]] = environment
            self.cells[environment["id"]] = {int(k): v for k, v in statuses.items()}
        self.sub_controls = {s["id"]: s for s in sub_controls}
        self.loaded = True

    def ensure_loaded(self) -> None:
        if not self.loaded:
            self.refresh()

    # -------------------- Views --------------------

    def ordered_controls(self) -> List[Dict[str, Any]]:
        return sorted(self.controls.values(), key=lambda c: (c["sort_order"], c["id"]))

    def ordered_items(self) -> List[Dict[str, Any]]:
        return sorted(self.items.values(), key=lambda i: i["id"])

    def sub_controls_for(self, control_id: int) -> List[Dict[str, Any]]:
        return sorted(
            (s for s in self.sub_controls.values() if s["control_id"] == control_id),
            key=lambda s: s["id"],
        )

    def cell(self, item_id: int, control_id: int) -> Optional[Dict[str, Any]]:
        return self.cells.get(item_id, {}).get(control_id)

    # -------------------- Mutations --------------------

    def create_item(self, data: Dict[str, Any]) -> Dict[str, Any]:
        item = self.client.create_item(data)
        self.items[item["id"]] = item
        self.cells[item["id"]] = {control_id: _default_cell() for control_id in self.controls}
        return item

    def update_item(self, item_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        self.client.update_item(item_id, data)
        item = self.client.get_item(item_id)
        self.items[item_id] = item
        return item

    def delete_item(self, item_id: int) -> None:
        self.client.delete_item(item_id)
        self.items.pop(item_id, None)
        self.cells.pop(item_id, None)

    def create_control(self, data: Dict[str, Any]) -> Dict[str, Any]:
        control = self.client.create_control(data)
        self.controls[control["id"]] = control
        for statuses in self.cells.values():
            statuses.setdefault(control["id"], _default_cell())
        return control

    def update_control(self, control_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        self.client.update_control(control_id, data)
        control = self.client.get_control(control_id)
        self.controls[control_id] = control
        return control

    def delete_control(self, control_id: int) -> None:
        self.client.delete_control(control_id)
        self.controls.pop(control_id, None)
        self.sub_controls = {
            k: v for k, v in self.sub_controls.items() if v["control_id"] != control_id
        }
        for statuses in self.cells.values():
            statuses.pop(control_id, None)

    def reorder_controls(self, ordered_ids: List[int]) -> List[Dict[str, Any]]:
        controls = self.client.reorder_controls(ordered_ids)
        self.controls = {c["id"]: c for c in controls}
        return controls

    def create_sub_control(self, data: Dict[str, Any]) -> Dict[str, Any]:
        sub_control = self.client.create_sub_control(data)
        self.sub_controls[sub_control["id"]] = sub_control
        return sub_control

    def update_sub_control(self, sub_control_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        self.client.update_sub_control(sub_control_id, data)
        sub_control = self.client.get_sub_control(sub_control_id)
        self.sub_controls[sub_control_id] = sub_control
        return sub_control

    def delete_sub_control(self, sub_control_id: int) -> None:
        self.client.delete_sub_control(sub_control_id)
        self.sub_controls.pop(sub_control_id, None)

    def set_control_status(
        self, item_id: int, control_id: int, status: str, notes: Optional[str] = None
    ) -> None:
        self.client.update_control_status(item_id, control_id, status, notes)
        self.cells.setdefault(item_id, {})[control_id] = {
            "status": status,
            "notes": notes or NOT_IMPLEMENTED_NOTE,
        }

    def set_sub_control_status(
        self, item_id: int, sub_control_id: int, status: str, notes: Optional[str] = None
    ) -> Dict[str, Any]:
        result = self.client.update_sub_control_status(item_id, sub_control_id, status, notes)
        sub_control = self.sub_controls.get(sub_control_id)
        if result.get("parent_downgraded") and sub_control is not None:
            self.cells.setdefault(item_id, {})[sub_control["control_id"]] = {
                "status": result.get("parent_status"),
                "notes": result.get("parent_notes"),
            }
        return result

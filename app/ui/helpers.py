"""
Presentation helpers for the Streamlit UI: search, status colors and
badges, tag parsing and matrix table rows.
"""
from typing import Any, Dict, Iterable, List, Optional

STATUS_OPTIONS = ["red", "yellow", "green"]
CRITICALITY_OPTIONS = ["low", "medium", "high", "critical"]

UNKNOWN_STATUS_COLOR = "gray"

STATUS_HEX = {
    "green": "#28a745",
    "yellow": "#ffc107",
    "red": "#dc3545",
    UNKNOWN_STATUS_COLOR: "#6c757d",
}

SEARCH_FIELDS = ("name", "description", "category", "owner")


def status_color(status: Optional[str]) -> str:
    """Color name for a status; anything unrecognized renders gray."""
    if status and status.lower() in ("red", "yellow", "green"):
        return status.lower()
    return UNKNOWN_STATUS_COLOR


def format_status_badge(status: Optional[str]) -> str:
    """Format status as colored badge."""
    emojis = {
        "green": "🟢",
        "yellow": "🟡",
        "red": "🔴",
    }
    color = status_color(status)
    emoji = emojis.get(color, "⚪")
    label = status.upper() if color != UNKNOWN_STATUS_COLOR else "UNKNOWN"
    return f"{emoji} {label}"


def format_criticality_badge(criticality: Optional[str]) -> str:
    """Format criticality as colored badge."""
    colors = {
        "critical": "🔴",
        "high": "🟠",
        "medium": "🟡",
        "low": "🔵"
    }
    if not criticality:
        return "⚪ N/A"
    emoji = colors.get(criticality.lower(), "⚪")
    return f"{emoji} {criticality.upper()}"


def parse_tags(raw: str) -> List[str]:
    """Comma-separated input to an ordered, de-duplicated tag list."""
    tags: List[str] = []
    for part in (raw or "").split(","):
        tag = part.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def matches_search(item: Dict[str, Any], query: str) -> bool:
    """
    Case-insensitive substring match over name, description, category,
    owner and tags. An empty query matches everything.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return True
    for field in SEARCH_FIELDS:
        value = item.get(field)
        if value and needle in str(value).lower():
            return True
    return any(needle in str(tag).lower() for tag in item.get("tags") or [])


def filter_items(items: Iterable[Dict[str, Any]], query: str) -> List[Dict[str, Any]]:
    return [item for item in items if matches_search(item, query)]


def client_green_eligible(sub_control_statuses: Iterable[Optional[str]]) -> bool:
    """
    Mirror of the server's green rule for instant feedback in the editor.

    Missing statuses count as red; no sub-controls means green is allowed.
    The server still has the final say.
    """
    return all((status or "red") == "green" for status in sub_control_statuses)


def allowed_statuses(green_eligible: bool) -> List[str]:
    if green_eligible:
        return list(STATUS_OPTIONS)
    return [s for s in STATUS_OPTIONS if s != "green"]


def build_matrix_rows(
    items: Iterable[Dict[str, Any]],
    controls: List[Dict[str, Any]],
    cells: Dict[int, Dict[int, Dict[str, Any]]],
) -> List[Dict[str, Any]]:
    """One row per environment with a badge per control, ready for a DataFrame."""
    rows = []
    for item in items:
        row = {
            "ID": item["id"],
            "Environment": item["name"],
            "Criticality": format_criticality_badge(item.get("criticality")),
        }
        for control in controls:
            cell = cells.get(item["id"], {}).get(control["id"])
            row[control["name"]] = format_status_badge(cell.get("status") if cell else None)
        rows.append(row)
    return rows


def status_summary(cells: Dict[int, Dict[int, Dict[str, Any]]]) -> Dict[str, int]:
    """Count of cells per color across the whole matrix."""
    summary = {"green": 0, "yellow": 0, "red": 0, UNKNOWN_STATUS_COLOR: 0}
    for statuses in cells.values():
        for cell in statuses.values():
            summary[status_color(cell.get("status"))] += 1
    return summary

"""National Rail departure board client (LDBWS GetDepartureBoard)."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any
import xml.etree.ElementTree as ET

import requests

LDBWS_BASE = "https://lite.realtime.nationalrail.co.uk/OpenLDBWS/ldb11.asmx"

_CLOCK_TIME = re.compile(r"^\d{2}:\d{2}$")
_CRS_CODE = re.compile(r"^[A-Za-z]{3}$")


class DeparturesClientError(Exception):
    """Raised when a departure board request fails or returns an unusable response."""


@dataclass(frozen=True)
class Departure:
    """Single departing service."""

    id: str
    scheduled_time: str
    destination: str
    status: str
    platform: str | None = None
    estimated_time: str | None = None

    @property
    def cancelled(self) -> bool:
        return self.status.lower() == "cancelled"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "scheduledTime": self.scheduled_time,
            "destination": self.destination,
            "status": self.status,
        }
        if self.platform is not None:
            data["platform"] = self.platform
        if self.estimated_time is not None:
            data["estimatedTime"] = self.estimated_time
        return data


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element, name: str) -> ET.Element | None:
    for child in element:
        if _local(child.tag) == name:
            return child
    return None


def _child_text(element: ET.Element, name: str) -> str | None:
    child = _child(element, name)
    if child is None or child.text is None:
        return None
    return child.text.strip() or None


def _iter_named(element: ET.Element, name: str):
    for node in element.iter():
        if _local(node.tag) == name:
            yield node


def validate_crs(code: str, field: str = "from") -> str:
    """Return an upper-cased three-letter CRS station code."""
    if not isinstance(code, str) or not _CRS_CODE.match(code.strip()):
        raise ValueError(f"Invalid '{field}' station CRS code (must be 3 letters): {code!r}")
    return code.strip().upper()


def parse_departure_board(xml_text: str) -> list[Departure]:
    """Map a GetDepartureBoard SOAP/XML response to departures."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise DeparturesClientError(f"Departure board response was not valid XML: {exc}") from exc

    for fault in _iter_named(root, "Fault"):
        message = _child_text(fault, "faultstring") or "unknown fault"
        raise DeparturesClientError(f"Departure board API error: {message}")

    departures = []
    for service in _iter_named(root, "service"):
        destination = "Unknown"
        dest_element = _child(service, "destination")
        if dest_element is not None:
            location = _child(dest_element, "location")
            if location is not None:
                destination = _child_text(location, "locationName") or destination

        std = _child_text(service, "std")
        etd = _child_text(service, "etd")
        departures.append(
            Departure(
                id=_child_text(service, "serviceID") or "",
                scheduled_time=std or "??:??",
                destination=destination,
                platform=_child_text(service, "platform"),
                status=etd or std or "Unknown",
                estimated_time=etd if etd and _CLOCK_TIME.match(etd) else None,
            )
        )
    return departures


class DeparturesClient:
    """Thin wrapper around the LDBWS departure board using requests."""

    def __init__(self, api_token: str) -> None:
        self._api_token = api_token
        self._timeout_seconds = 10

    def get_departures(self, from_crs: str, to_crs: str | None = None, num_rows: int = 10) -> list[Departure]:
        """Fetch the next departures from ``from_crs``, optionally calling at ``to_crs``."""
        if not self._api_token:
            raise DeparturesClientError("Departure board API token is not configured")
        params: dict[str, Any] = {
            "numRows": num_rows,
            "crs": validate_crs(from_crs, "from"),
            "accessToken": self._api_token,
        }
        if to_crs:
            params["filterCrs"] = validate_crs(to_crs, "to")
            params["filterType"] = "to"
        return parse_departure_board(self._get("/GetDepartureBoard", params=params))

    def _get(self, path: str, params: dict[str, Any]) -> str:
        url = f"{LDBWS_BASE}{path}"
        try:
            response = requests.get(url, params=params, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            raise DeparturesClientError(f"Departure board request failed: {exc}") from exc

        if response.status_code != 200:
            detail = f"Status {response.status_code}"
            try:
                parse_departure_board(response.text)
            except DeparturesClientError as exc:
                detail = f"{detail}, {exc}"
            raise DeparturesClientError(f"Departure board request failed: {detail}")

        return response.text


__all__ = [
    "Departure",
    "DeparturesClient",
    "DeparturesClientError",
    "parse_departure_board",
    "validate_crs",
]

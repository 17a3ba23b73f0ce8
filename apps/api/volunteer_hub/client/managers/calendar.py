"""Calendar manager."""

from __future__ import annotations

import re
from datetime import date, time
from pathlib import Path

from volunteer_hub.client.gateway import ApiClient

_FILENAME_RE = re.compile(r'filename="([^"]+)"')


def _serialize(fields: dict) -> dict:
    return {
        k: v.isoformat() if isinstance(v, (date, time)) else v
        for k, v in fields.items()
    }


class CalendarManager:
    def __init__(self, api: ApiClient):
        self.api = api

    def list(self, upcoming: bool = False, month: int | None = None, year: int | None = None) -> list[dict]:
        params = {"upcoming": "true"} if upcoming else {"month": month, "year": year}
        return self.api.get("/calendar/events", params=params)["events"]

    def upcoming(self, limit: int = 5) -> list[dict]:
        return self.api.get("/calendar/upcoming", params={"limit": limit})["events"]

    def get(self, event_id) -> dict:
        return self.api.get(f"/calendar/events/{event_id}")["event"]

    def create(self, title: str, start_date, **fields) -> dict:
        payload = _serialize({"title": title, "start_date": start_date, **fields})
        return self.api.post("/calendar/events", json=payload)["event"]

    def update(self, event_id, **fields) -> dict:
        return self.api.put(f"/calendar/events/{event_id}", json=_serialize(fields))["event"]

    def delete(self, event_id) -> dict:
        return self.api.delete(f"/calendar/events/{event_id}")

    def rsvp(self, event_id, status: str, notes: str | None = None) -> dict:
        return self.api.post(
            f"/calendar/events/{event_id}/rsvp",
            json={"status": status, "notes": notes},
        )

    @staticmethod
    def can_signup(event: dict) -> bool:
        capacity = event.get("max_volunteers")
        return capacity is None or (event.get("confirmed_signups") or 0) < capacity

    def export(self, event_id, directory: Path | str) -> Path:
        """Download the event's .ics file into directory and return its path."""
        response = self.api.download(f"/calendar/events/{event_id}/export")
        match = _FILENAME_RE.search(response.headers.get("content-disposition", ""))
        filename = match.group(1) if match else f"event-{event_id}.ics"
        path = Path(directory) / Path(filename).name
        path.write_bytes(response.content)
        return path

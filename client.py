import requests
from typing import Iterable, Optional

from calendar_model import CalendarData


class CalendarClient:
    """Simple REST client for the workout calendar API."""

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs):
        resp = requests.request(
            method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs
        )
        resp.raise_for_status()
        return resp.json()

    def get_calendar(self) -> CalendarData:
        return CalendarData.from_dict(self._request("GET", "/calendar"))

    def put_calendar(self, calendar: CalendarData) -> None:
        self._request("PUT", "/calendar", json=calendar.to_dict())

    def list_plans(self):
        return self._request("GET", "/plans")

    def create_plan(
        self,
        name: str,
        color: str,
        exercises: Iterable[str] = (),
        duration: Optional[int] = None,
    ) -> str:
        payload = {"name": name, "color": color, "exercises": list(exercises)}
        if duration is not None:
            payload["duration"] = duration
        return self._request("POST", "/plans", json=payload)["id"]

    def delete_plan(self, plan_id: str) -> None:
        self._request("DELETE", f"/plans/{plan_id}")

    def schedule(self, date_key: str, plan_id: str) -> str:
        return self._request(
            "POST", f"/schedule/{date_key}", params={"plan_id": plan_id}
        )["status"]

    def unschedule(self, date_key: str, plan_id: str) -> str:
        return self._request("DELETE", f"/schedule/{date_key}/{plan_id}")["status"]

    def drop(self, plan_id: str, target: str) -> str:
        return self._request(
            "POST", "/drop", params={"plan_id": plan_id, "target": target}
        )["status"]

    def one_rep_max(self, weight: float, reps: int) -> float:
        return self._request(
            "GET", "/tools/one_rep_max", params={"weight": weight, "reps": reps}
        )["one_rep_max"]

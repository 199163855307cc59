from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from bazi_core.providers import CalendarProvider


class FakeProvider(CalendarProvider):
    """In-memory provider returning fixed labels and boundaries at fixed offsets."""

    name = "fake"

    def __init__(
        self,
        labels: dict | None = None,
        next_after: timedelta = timedelta(days=18),
        prev_before: timedelta = timedelta(days=40),
    ) -> None:
        self.labels = labels if labels is not None else {
            "year": "庚午", "month": "己卯", "day": "己卯", "hour": "己巳",
        }
        self.next_after = next_after
        self.prev_before = prev_before
        self.calls: list[tuple[str, datetime]] = []

    def resolve_pillars(self, moment: datetime) -> dict:
        self.calls.append(("pillars", moment))
        return self.labels

    def next_jie(self, moment: datetime) -> datetime:
        self.calls.append(("next_jie", moment))
        return moment + self.next_after

    def prev_jie(self, moment: datetime) -> datetime:
        self.calls.append(("prev_jie", moment))
        return moment - self.prev_before


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def make_provider():
    return FakeProvider

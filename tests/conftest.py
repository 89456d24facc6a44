"""Shared test fixtures for the certificate verification suite."""

import json

import pytest

from app.config import Settings
from app.presenter import SessionView


SAMPLE_CERTIFICATES = [
    {"certificateId": "AWS-17-JAN-26-CC-001", "name": "Jane Doe"},
    {"certificateId": "AWS-17-JAN-26-CC-002", "name": "Rahul Patil", "track": "Serverless"},
    {"certificateId": "aws-17-jan-26-cc-003", "name": "Sneha Kulkarni"},
]


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def dataset_path(tmp_path):
    path = tmp_path / "certificates.json"
    path.write_text(json.dumps({"certificates": SAMPLE_CERTIFICATES}), encoding="utf-8")
    return path


@pytest.fixture
def settings(dataset_path):
    """Settings with no artificial delays so tests run instantly."""
    return Settings(
        dataset_path=str(dataset_path),
        max_attempts=5,
        cooldown_seconds=60,
        result_delay_seconds=0,
        auto_trigger_delay_seconds=0,
        toast_seconds=4,
        event_title="Cloud Computing With AWS",
        event_date="January 17, 2026",
        event_organizer="AWS Cloud Club",
    )


@pytest.fixture
def view(settings, clock):
    return SessionView(event_info=settings.event_info, toast_seconds=settings.toast_seconds, clock=clock)

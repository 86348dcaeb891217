"""Shared test data and helpers importable from test modules."""

from datetime import datetime, timedelta, timezone

from src.domain.ports import Company

ACME = Company(id="company-acme", slug="acme", name="Acme", registered_domain="acme.com")
OPEN_CO = Company(id="company-open", slug="open-co", name="Open Co", registered_domain=None)

TEST_JWT_SECRET = "test-secret"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def wrong_code_for(code: str) -> str:
    return "000000" if code != "000000" else "111111"

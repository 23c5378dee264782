# tests/utils/registration.py
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session
from starlette.testclient import TestClient

from signup_service.models.registration import Registration
from tests.utils.registration_cases import human_form_load_time, submission


def post_registration(
    client: TestClient,
    body: Optional[dict] = None,
    *,
    ip: str = "198.51.100.10",
    user_agent: str = "pytest-browser/1.0",
    with_form_load_time: bool = True,
    **overrides,
):
    """POST /api/register as a human would: empty honeypots, form open for 10s."""
    payload = dict(body) if body is not None else submission(**overrides)
    payload.setdefault("website", "")
    payload.setdefault("phone", "")
    payload.setdefault("address", "")
    if with_form_load_time:
        payload.setdefault("formLoadTime", human_form_load_time())
    return client.post(
        "/api/register",
        json=payload,
        headers={"X-Forwarded-For": ip, "User-Agent": user_agent},
    )


def create_registration(
    db: Session,
    *,
    email: str,
    clan_nickname: str = "Seeded",
    consent: bool = True,
    bezahlt: int = 0,
    created_at: Optional[datetime] = None,
) -> Registration:
    """Insert a row directly, bypassing the intake."""
    row = Registration(
        clan_nickname=clan_nickname,
        email=email,
        ticket_type="Ü18",
        consent=consent,
        bezahlt=bezahlt,
        created_at=created_at or datetime.now(timezone.utc),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row

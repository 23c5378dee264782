# signup_service/api/endpoints/registrations.py
import logging
import time
from typing import Any, List

from fastapi import APIRouter, Body, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from signup_service.api import deps
from signup_service.core.config import Settings, get_settings
from signup_service.core.errors import (
    BotDetectedError,
    RegistrationStoreError,
    RegistrationValidationError,
)
from signup_service.crud import crud_registration
from signup_service.db.session import get_db
from signup_service.schemas.registration import (
    Participant,
    RegistrationAccepted,
    RequestProvenance,
)
from signup_service.utils.bot_defense import detect_bot_activity
from signup_service.utils.validators import validate_and_sanitize

router = APIRouter(tags=["Registrations"])
logger = logging.getLogger(__name__)


@router.post(
    "/register",
    response_model=RegistrationAccepted,
    dependencies=[Depends(deps.enforce_registration_rate_limit)],
)
def register(
    submission: Any = Body(...),
    db: Session = Depends(get_db),
    client_ip: str = Depends(deps.get_client_ip),
    forwarded_ip: str = Depends(deps.get_forwarded_ip),
    user_agent: str = Depends(deps.get_user_agent),
    settings: Settings = Depends(get_settings),
):
    """
    Create or update the registration for the submitted email.

    Order matters: bot checks run before validation, and nothing touches
    the database until both passed.
    """
    received_at = time.time()

    if not isinstance(submission, dict):
        raise RegistrationValidationError(details=["Anfrage muss ein JSON-Objekt sein."])

    bot_reason = detect_bot_activity(
        submission,
        received_at=received_at,
        min_fill_seconds=settings.BOT_MIN_FILL_SECONDS,
        require_form_load_time=settings.BOT_REQUIRE_FORM_LOAD_TIME,
    )
    if bot_reason:
        logger.warning(f"Bot submission rejected from {client_ip}: {bot_reason}")
        raise BotDetectedError()

    validation = validate_and_sanitize(submission)
    if not validation.is_valid:
        raise RegistrationValidationError(
            details=validation.messages,
            consent_error=validation.consent_error,
        )

    result = crud_registration.registration.upsert_by_email(
        db,
        obj_in=validation.record,
        provenance=RequestProvenance(ip_address=forwarded_ip, user_agent=user_agent),
    )

    logger.info(
        f"Registration {'created' if result.created else 'updated'}: "
        f"ID {result.id}, Email: {validation.record.email}, IP: {forwarded_ip}"
    )
    return RegistrationAccepted(id=result.id)


@router.get(
    "/registrations",
    response_model=List[Participant],
    dependencies=[Depends(deps.require_admin_token)],
)
def list_registrations(db: Session = Depends(get_db)):
    """
    Consenting participants, newest first, at most 100.

    Email and request provenance never leave through this path.
    """
    try:
        return crud_registration.registration.get_public_listing(db)
    except SQLAlchemyError as e:
        logger.error(f"Registration list error: {e}", exc_info=True)
        raise RegistrationStoreError("Serverfehler beim Laden der Teilnehmer.") from e

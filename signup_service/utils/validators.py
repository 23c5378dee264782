"""
Validation and sanitization of raw signup submissions.

``validate_and_sanitize`` is the authoritative check for everything that
reaches the store. It is a pure function: it reads a mapping of
client-supplied values and returns either a canonical record or every
problem it found, never both.
"""

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from email_validator import EmailNotValidError, validate_email

from signup_service.schemas.registration import RegistrationCreate, TicketType
from signup_service.utils.sanitize import normalize_email, strip_markup

NICKNAME_MIN_LENGTH = 2
NICKNAME_MAX_LENGTH = 50
NICKNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_\[\]\-\.\s]+$", re.ASCII)
EMAIL_MAX_LENGTH = 255
GUESTS_MIN = 0
GUESTS_MAX = 10
# int() alone would also take "1_0", and raises on very long digit runs
GUESTS_STRING_PATTERN = re.compile(r"^[+-]?\d{1,6}$")
BOOLEAN_FIELDS = ("shirt", "pizza", "drinks", "consent")

_MISSING = object()


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


@dataclass
class ValidationResult:
    record: Optional[RegistrationCreate] = None
    errors: List[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def messages(self) -> List[str]:
        return [error.message for error in self.errors]

    @property
    def consent_error(self) -> Optional[str]:
        for error in self.errors:
            if error.field == "consent":
                return error.message
        return None


def _check_nickname(raw: Any, errors: List[FieldError]) -> Optional[str]:
    if not isinstance(raw, str) or not raw.strip():
        errors.append(FieldError("clan_nickname", "Clan/Nickname ist erforderlich."))
        return None

    nickname = strip_markup(raw)
    if not nickname:
        errors.append(
            FieldError(
                "clan_nickname",
                "Clan/Nickname enthält nach dem Entfernen von HTML keine Zeichen mehr.",
            )
        )
        return None
    if not NICKNAME_MIN_LENGTH <= len(nickname) <= NICKNAME_MAX_LENGTH:
        errors.append(
            FieldError(
                "clan_nickname",
                f"Clan/Nickname muss zwischen {NICKNAME_MIN_LENGTH} und "
                f"{NICKNAME_MAX_LENGTH} Zeichen lang sein.",
            )
        )
        return None
    if not NICKNAME_PATTERN.match(nickname):
        errors.append(FieldError("clan_nickname", "Clan/Nickname enthält ungültige Zeichen."))
        return None
    return nickname


def _is_valid_email_syntax(email: str) -> bool:
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def _check_email(raw: Any, errors: List[FieldError]) -> Optional[str]:
    if not isinstance(raw, str) or not raw.strip():
        errors.append(FieldError("email", "E-Mail ist erforderlich."))
        return None

    email = raw.strip().lower()
    if not _is_valid_email_syntax(email):
        errors.append(FieldError("email", "E-Mail Format ist ungültig."))
        return None

    canonical = normalize_email(email)
    if not _is_valid_email_syntax(canonical):
        errors.append(FieldError("email", "E-Mail Format ist ungültig."))
        return None
    if len(canonical) > EMAIL_MAX_LENGTH:
        errors.append(FieldError("email", "E-Mail ist zu lang."))
        return None
    return canonical


def _check_ticket_type(raw: Any, errors: List[FieldError]) -> Optional[TicketType]:
    if isinstance(raw, str):
        # "Ü" can arrive decomposed (U + combining diaeresis) from some keyboards
        try:
            return TicketType(unicodedata.normalize("NFC", raw))
        except ValueError:
            pass
    errors.append(FieldError("ticket_type", "Ungültiger Ticket-Typ."))
    return None


def _check_boolean(name: str, raw: Any, errors: List[FieldError]) -> bool:
    if raw is _MISSING:
        return False
    if not isinstance(raw, bool):
        errors.append(FieldError(name, f"{name} muss ein Boolean-Wert sein."))
        return False
    return raw


def _coerce_guests(raw: Any) -> Optional[int]:
    """Integer value of ``raw`` or None if it is not an integer."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    if isinstance(raw, str) and GUESTS_STRING_PATTERN.match(raw.strip()):
        return int(raw)
    return None


def _check_guests(raw: Any, errors: List[FieldError]) -> int:
    if raw is _MISSING or raw is None:
        return 0
    guests = _coerce_guests(raw)
    if guests is None or not GUESTS_MIN <= guests <= GUESTS_MAX:
        errors.append(
            FieldError("guests", f"Ungültige Anzahl Gäste ({GUESTS_MIN}-{GUESTS_MAX} erlaubt).")
        )
        return 0
    return guests


def validate_and_sanitize(submission: Mapping[str, Any]) -> ValidationResult:
    """Validate a raw submission and build its canonical record.

    Every rule runs, so the result lists all problems at once. The consent
    error is tagged with its own field and can be pulled out via
    ``ValidationResult.consent_error``.
    """
    errors: List[FieldError] = []

    nickname = _check_nickname(submission.get("clan_nickname"), errors)
    email = _check_email(submission.get("email"), errors)
    ticket_type = _check_ticket_type(submission.get("ticket_type"), errors)
    flags = {
        name: _check_boolean(name, submission.get(name, _MISSING), errors)
        for name in BOOLEAN_FIELDS
    }
    guests = _check_guests(submission.get("guests", _MISSING), errors)

    if submission.get("consent", _MISSING) is not True:
        errors.append(FieldError("consent", "Bestätigung (Privatparty) ist Pflicht."))

    if errors:
        return ValidationResult(errors=errors)

    record = RegistrationCreate(
        clan_nickname=nickname,
        email=email,
        ticket_type=ticket_type,
        shirt=flags["shirt"],
        pizza=flags["pizza"],
        drinks=flags["drinks"],
        guests=guests,
        consent=True,
    )
    return ValidationResult(record=record)

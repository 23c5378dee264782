"""
Advisory pre-submission check for the signup form.

Mirrors the service's validation rules so a form can show every problem
before it is sent. The service never trusts this result and re-validates
every field on its own.
"""

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from email_validator import EmailNotValidError, validate_email

_NICKNAME_CHARS = re.compile(r"[a-zA-Z0-9_\[\]\-\.\s]+", re.ASCII)
_SCRIPT = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)

_TAG_RULES: Dict[str, Tuple[str, str]] = {}
for _domain in ("gmail.com", "googlemail.com"):
    _TAG_RULES[_domain] = ("+", "gmail.com")
for _domain in ("icloud.com", "me.com", "outlook.com", "outlook.de", "hotmail.com",
                "hotmail.de", "live.com", "live.de", "msn.com", "passport.com"):
    _TAG_RULES[_domain] = ("+", _domain)
for _domain in ("yahoo.com", "yahoo.de", "ymail.com", "rocketmail.com"):
    _TAG_RULES[_domain] = ("-", _domain)
for _domain in ("yandex.ru", "yandex.ua", "yandex.kz", "yandex.com", "yandex.by", "ya.ru"):
    _TAG_RULES[_domain] = ("", "yandex.ru")

TICKET_TYPES = ("Ü18", "U18")


@dataclass
class PrecheckResult:
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def failed_fields(self) -> List[str]:
        return [name for name, _ in self.errors]

    def message_for(self, name: str) -> Optional[str]:
        return next((message for field_name, message in self.errors if field_name == name), None)


def _mailbox(address: str) -> str:
    """The address the service will store for ``address``."""
    local, _, domain = address.rpartition("@")
    separator, canonical_domain = _TAG_RULES.get(domain, ("", domain))
    if separator == "+":
        local = local.split("+", 1)[0]
        if canonical_domain == "gmail.com":
            local = local.replace(".", "")
    elif separator == "-" and "-" in local:
        local = local[: local.rindex("-")]
    return f"{local}@{canonical_domain}"


def _syntax_ok(address: str) -> bool:
    try:
        validate_email(address, check_deliverability=False)
        return True
    except EmailNotValidError:
        return False


def _nickname(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return "Clan/Nickname ist Pflicht."
    cleaned = _SCRIPT.sub("", value.strip()).replace("<", "").replace(">", "").strip()[:255]
    if not cleaned:
        return "Clan/Nickname darf nicht nur aus HTML bestehen."
    if len(cleaned) < 2 or len(cleaned) > 50:
        return "Clan/Nickname: 2 bis 50 Zeichen."
    if not _NICKNAME_CHARS.fullmatch(cleaned):
        return "Clan/Nickname: nur Buchstaben, Ziffern, _ [ ] - . und Leerzeichen."
    return None


def _email(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return "Bitte gültige E-Mail angeben."
    address = value.strip().lower()
    if "@" not in address or not _syntax_ok(address):
        return "Bitte gültige E-Mail angeben."
    mailbox = _mailbox(address)
    if not _syntax_ok(mailbox):
        return "Bitte gültige E-Mail angeben."
    if len(mailbox) > 255:
        return "E-Mail ist zu lang."
    return None


def _ticket_type(value: Any) -> Optional[str]:
    if isinstance(value, str) and unicodedata.normalize("NFC", value) in TICKET_TYPES:
        return None
    return "Bitte Ü18 oder U18 wählen."


def _guests(value: Any) -> Optional[str]:
    if value is None:
        return None
    number: Optional[int] = None
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and re.fullmatch(r"\s*[+-]?\d{1,6}\s*", value):
        number = int(value)
    if number is None or not 0 <= number <= 10:
        return "Zuschauer: 0 bis 10."
    return None


def _flag(name: str) -> Callable[[Any], Optional[str]]:
    def check(value: Any) -> Optional[str]:
        return None if isinstance(value, bool) else f"{name}: bitte ankreuzen oder leer lassen."
    return check


_RULES: List[Tuple[str, Callable[[Any], Optional[str]], bool]] = [
    # (field, check, check even when absent)
    ("clan_nickname", _nickname, True),
    ("email", _email, True),
    ("ticket_type", _ticket_type, True),
    ("shirt", _flag("shirt"), False),
    ("pizza", _flag("pizza"), False),
    ("drinks", _flag("drinks"), False),
    ("consent", _flag("consent"), False),
    ("guests", _guests, False),
]


def precheck_submission(form: Mapping[str, Any]) -> PrecheckResult:
    """Run every rule against ``form`` and collect the failures in field order."""
    result = PrecheckResult()
    for name, check, always in _RULES:
        if name not in form and not always:
            continue
        message = check(form.get(name))
        if message:
            result.errors.append((name, message))

    if form.get("consent") is not True:
        result.errors.append(("consent", "Bitte die Privatparty-Bestätigung anhaken."))
    return result

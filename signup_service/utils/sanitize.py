# signup_service/utils/sanitize.py
import re

_SCRIPT_BLOCK = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_ANGLE_BRACKETS = re.compile(r"[<>]")

MAX_RAW_TEXT_LENGTH = 255

# Providers whose mailboxes ignore a sub-address tag.
_GMAIL_DOMAINS = {"gmail.com", "googlemail.com"}
_PLUS_TAG_DOMAINS = {
    "icloud.com", "me.com",
    "outlook.com", "outlook.de", "hotmail.com", "hotmail.de", "live.com", "live.de",
    "msn.com", "passport.com",
}
_DASH_TAG_DOMAINS = {"yahoo.com", "yahoo.de", "ymail.com", "rocketmail.com"}
_YANDEX_DOMAINS = {
    "yandex.ru", "yandex.ua", "yandex.kz", "yandex.com", "yandex.by", "ya.ru",
}


def strip_markup(value: str) -> str:
    """Remove <script> blocks and any remaining angle brackets, then trim.

    The result is cut to MAX_RAW_TEXT_LENGTH so later checks never run
    against unbounded input.
    """
    cleaned = _SCRIPT_BLOCK.sub("", value.strip())
    cleaned = _ANGLE_BRACKETS.sub("", cleaned)
    return cleaned.strip()[:MAX_RAW_TEXT_LENGTH]


def normalize_email(email: str) -> str:
    """Fold equivalent spellings of a mailbox to one canonical address.

    Lowercases everything. For providers that ignore sub-address tags the
    tag is dropped, and Gmail additionally ignores dots in the local part.
    Addresses at other domains keep their local part as typed.
    """
    email = email.strip().lower()
    local, sep, domain = email.rpartition("@")
    if not sep:
        return email

    if domain in _GMAIL_DOMAINS:
        local = local.split("+", 1)[0].replace(".", "")
        domain = "gmail.com"
    elif domain in _PLUS_TAG_DOMAINS:
        local = local.split("+", 1)[0]
    elif domain in _DASH_TAG_DOMAINS:
        local = local.rsplit("-", 1)[0] if "-" in local else local
    elif domain in _YANDEX_DOMAINS:
        domain = "yandex.ru"

    return f"{local}@{domain}"

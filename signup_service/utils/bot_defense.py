"""
Cheap signals that a submission was filled in by a script.

Both run before validation. Callers must answer every hit the same way so
an adversary cannot tell which signal fired; the reason string returned
here is for server logs only.
"""

import math
import time
from typing import Any, Mapping, Optional

# Rendered off-screen by the form. Humans leave them empty.
HONEYPOT_FIELDS = ("website", "phone", "address")
FORM_LOAD_TIME_FIELD = "formLoadTime"
DEFAULT_MIN_FILL_SECONDS = 3.0


def find_filled_honeypot(submission: Mapping[str, Any]) -> Optional[str]:
    for name in HONEYPOT_FIELDS:
        if submission.get(name):
            return name
    return None


def _as_epoch_millis(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        millis = float(value)
    elif isinstance(value, str):
        try:
            millis = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return millis if math.isfinite(millis) else None


def detect_bot_activity(
    submission: Mapping[str, Any],
    received_at: Optional[float] = None,
    min_fill_seconds: float = DEFAULT_MIN_FILL_SECONDS,
    require_form_load_time: bool = False,
) -> Optional[str]:
    """
    Return why ``submission`` looks automated, or None if it looks human.

    Args:
        submission: Raw request body
        received_at: Receipt time in epoch seconds (defaults to now)
        min_fill_seconds: Minimum plausible time between form load and submit
        require_form_load_time: Treat a missing formLoadTime as a bot signal
    """
    honeypot = find_filled_honeypot(submission)
    if honeypot:
        return f"honeypot field '{honeypot}' filled"

    raw_load_time = submission.get(FORM_LOAD_TIME_FIELD)
    if raw_load_time is None or raw_load_time == "":
        if require_form_load_time:
            return "formLoadTime missing"
        return None

    loaded_at_ms = _as_epoch_millis(raw_load_time)
    if loaded_at_ms is None:
        return "formLoadTime is not a timestamp"

    now_ms = (received_at if received_at is not None else time.time()) * 1000
    elapsed_ms = now_ms - loaded_at_ms
    if elapsed_ms < min_fill_seconds * 1000:
        return f"form submitted {elapsed_ms:.0f}ms after load"

    return None

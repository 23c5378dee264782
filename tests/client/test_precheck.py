# tests/client/test_precheck.py
import pytest

from signup_client import precheck_submission
from signup_service.utils.validators import validate_and_sanitize
from tests.utils.registration_cases import VALIDATION_CASES, submission


@pytest.mark.parametrize(
    "form, failing_fields",
    [(case[1], case[2]) for case in VALIDATION_CASES],
    ids=[case[0] for case in VALIDATION_CASES],
)
def test_precheck_cases(form, failing_fields):
    assert precheck_submission(form).failed_fields == failing_fields


@pytest.mark.parametrize(
    "form", [case[1] for case in VALIDATION_CASES], ids=[case[0] for case in VALIDATION_CASES]
)
def test_precheck_agrees_with_service(form):
    server_fields = [error.field for error in validate_and_sanitize(form).errors]

    assert precheck_submission(form).failed_fields == server_fields


def test_valid_form_is_ok():
    result = precheck_submission(submission())

    assert result.ok
    assert result.message_for("consent") is None


def test_consent_message():
    result = precheck_submission(submission(consent=False))

    assert not result.ok
    assert result.message_for("consent") == "Bitte die Privatparty-Bestätigung anhaken."


def test_messages_are_form_friendly():
    result = precheck_submission(submission(clan_nickname="a", guests=12))

    assert result.message_for("clan_nickname") == "Clan/Nickname: 2 bis 50 Zeichen."
    assert result.message_for("guests") == "Zuschauer: 0 bis 10."

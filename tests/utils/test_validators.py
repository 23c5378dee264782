# tests/utils/test_validators.py
import pytest

from signup_service.schemas.registration import TicketType
from signup_service.utils.validators import validate_and_sanitize
from tests.utils.registration_cases import VALIDATION_CASES, submission


@pytest.mark.parametrize(
    "submission_in, failing_fields",
    [(case[1], case[2]) for case in VALIDATION_CASES],
    ids=[case[0] for case in VALIDATION_CASES],
)
def test_validation_cases(submission_in, failing_fields):
    result = validate_and_sanitize(submission_in)

    assert [error.field for error in result.errors] == failing_fields
    assert result.is_valid is (not failing_fields)
    assert (result.record is not None) is result.is_valid


def test_valid_submission_builds_canonical_record():
    result = validate_and_sanitize(
        submission(clan_nickname="  [BN] Frag  ", email=" Test.User+x@Example.COM ", guests="3")
    )

    record = result.record
    assert record.clan_nickname == "[BN] Frag"
    assert record.email == "test.user+x@example.com"
    assert record.ticket_type is TicketType.adult
    assert record.guests == 3
    assert record.consent is True


def test_absent_flags_default_to_false():
    data = submission()
    for name in ("shirt", "pizza", "drinks", "guests"):
        del data[name]

    record = validate_and_sanitize(data).record

    assert (record.shirt, record.pizza, record.drinks, record.guests) == (False, False, False, 0)


def test_decomposed_umlaut_is_stored_composed():
    record = validate_and_sanitize(submission(ticket_type="U\u030818")).record

    assert record.ticket_type.value == "Ü18"


def test_gmail_address_is_folded():
    record = validate_and_sanitize(submission(email="Frag.Master+lan@googlemail.com")).record

    assert record.email == "fragmaster@gmail.com"


def test_script_is_removed_before_length_check():
    result = validate_and_sanitize(submission(clan_nickname="<script>alert(1)</script>Ok"))

    assert result.record.clan_nickname == "Ok"


def test_consent_error_is_exposed_separately():
    result = validate_and_sanitize(submission(clan_nickname="a", consent=False))

    assert result.consent_error == "Bestätigung (Privatparty) ist Pflicht."
    assert result.messages[-1] == result.consent_error
    assert len(result.messages) == 2


def test_no_consent_error_when_consent_given():
    result = validate_and_sanitize(submission(guests=99))

    assert result.consent_error is None
    assert result.messages == ["Ungültige Anzahl Gäste (0-10 erlaubt)."]


def test_all_problems_reported_at_once():
    result = validate_and_sanitize({})

    assert [error.field for error in result.errors] == [
        "clan_nickname", "email", "ticket_type", "consent",
    ]

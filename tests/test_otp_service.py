"""Tests for one-time code issuing."""

from datetime import UTC, datetime, timedelta

import pytest

from askmyfile.domain.errors import ErrorCategory, GatewayError
from askmyfile.services.otp import OtpService
from tests.conftest import InMemoryOtpRepository, RecordingNotifier


def _service() -> OtpService:
    return OtpService(repository=InMemoryOtpRepository(), notifier=RecordingNotifier())


def test_issue_code_stores_code_and_queues_email() -> None:
    service = _service()

    record = service.issue_code("  User@Example.com ")

    assert record.email == "user@example.com"
    assert len(record.code) == 6
    assert record.code.isdigit()
    assert service.repository.get_otp("user@example.com") == record
    job = service.notifier.jobs[0]
    assert job.to == "user@example.com"
    assert record.code in job.html
    assert job.text == f"Your OTP is {record.code} (valid for 5 minutes)"


def test_issue_code_rejects_invalid_email() -> None:
    service = _service()

    with pytest.raises(GatewayError) as excinfo:
        service.issue_code("not-an-email")

    assert excinfo.value.error.category is ErrorCategory.BAD_REQUEST
    assert service.notifier.jobs == []


def test_verify_code_consumes_matching_code() -> None:
    service = _service()
    record = service.issue_code("user@example.com")

    assert service.verify_code("user@example.com", record.code) is True
    assert service.verify_code("user@example.com", record.code) is False


def test_verify_code_rejects_wrong_code() -> None:
    service = _service()
    record = service.issue_code("user@example.com")
    wrong = "000000" if record.code != "000000" else "111111"

    assert service.verify_code("user@example.com", wrong) is False


def test_verify_code_rejects_expired_code() -> None:
    service = _service()
    service.repository.save_otp(
        "user@example.com", "123456", datetime.now(tz=UTC) - timedelta(seconds=1)
    )

    assert service.verify_code("user@example.com", "123456") is False


def test_wrong_guesses_are_counted() -> None:
    service = _service()
    record = service.issue_code("user@example.com")
    wrong = "000000" if record.code != "000000" else "111111"

    service.verify_code("user@example.com", wrong)
    service.verify_code("user@example.com", wrong)

    assert service.repository.get_otp("user@example.com").failed_attempts == 2
    assert service.verify_code("user@example.com", record.code) is True


def test_code_is_discarded_after_too_many_wrong_guesses() -> None:
    service = _service()
    record = service.issue_code("user@example.com")
    wrong = "000000" if record.code != "000000" else "111111"

    for _ in range(service.max_failed_attempts):
        assert service.verify_code("user@example.com", wrong) is False

    assert service.repository.get_otp("user@example.com") is None
    assert service.verify_code("user@example.com", record.code) is False


def test_new_code_resets_failed_attempts() -> None:
    service = _service()
    first = service.issue_code("user@example.com")
    wrong = "000000" if first.code != "000000" else "111111"
    service.verify_code("user@example.com", wrong)

    second = service.issue_code("user@example.com")

    assert service.repository.get_otp("user@example.com").failed_attempts == 0
    assert service.verify_code("user@example.com", second.code) is True

import structlog

from tutorledger.config import Settings
from tutorledger.main import create_app
from tutorledger.shared.logging import PhoneRedactionProcessor, configure_logging


def _redacting() -> bool:
    return any(isinstance(p, PhoneRedactionProcessor) for p in structlog.get_config()["processors"])


def test_phone_numbers_are_masked():
    out = PhoneRedactionProcessor()(None, "info", {"event": "Created Student", "phone": "+20 100 123 4567"})
    assert out["phone"] == "20****67"
    assert out["event"] == "Created Student"


def test_timestamps_and_ids_survive():
    event = {
        "timestamp": "2024-03-01T10:00:00Z",
        "paid_at": "2024-03-01",
        "entity_id": "123e4567-e89b-12d3-a456-426614174000",
    }
    assert PhoneRedactionProcessor()(None, "info", dict(event)) == event


def test_money_values_survive():
    event = {
        "event": "Debt settled",
        "amount": "12345678.00",
        "remaining": "87654321.50",
        "paid_total": "10000000.00",
        "due_total": "99999999.99",
    }
    assert PhoneRedactionProcessor()(None, "info", dict(event)) == event


def test_redaction_follows_the_flag():
    configure_logging(json_logs=False, redact_pii=False)
    assert not _redacting()
    configure_logging(json_logs=False, redact_pii=True)
    assert _redacting()


def test_app_skips_redaction_in_local():
    create_app(Settings(log_format="console"))
    assert not _redacting()
    create_app(Settings(environment="staging", jwt_secret="s" * 32, log_format="console"))
    assert _redacting()

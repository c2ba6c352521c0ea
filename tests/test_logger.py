"""Tests for logging setup and redaction."""

import logging

from order_migration.logger import (
    REDACTED,
    ContextFormatter,
    RedactingFilter,
    _dated_name,
    configure_logging,
    log_with_context,
)


def make_record(msg="message", args=()):
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)


class TestRedactingFilter:
    def test_redacts_context_attributes(self):
        record = make_record()
        record.email = "jane@example.com"
        record.order_id = "O1"

        RedactingFilter(["Email"]).filter(record)

        assert record.email == REDACTED
        assert record.order_id == "O1"

    def test_redacts_nested_dict_args(self):
        record = make_record("payload %(customer)s", ({"customer": {"password": "hunter2", "id": 7}},))

        RedactingFilter(["password"]).filter(record)

        assert record.args == {"customer": {"password": REDACTED, "id": 7}}
        assert "hunter2" not in record.getMessage()

    def test_redacts_lists(self):
        record = make_record()
        record.rows = [{"pin": "1234"}, {"pin": "5678"}]

        RedactingFilter(["pin"]).filter(record)

        assert record.rows == [{"pin": REDACTED}, {"pin": REDACTED}]

    def test_no_keys_is_passthrough(self):
        record = make_record()
        record.password = "secret"

        assert RedactingFilter().filter(record)
        assert record.password == "secret"


def test_context_formatter_appends_fields():
    record = make_record("Validation failed")
    record.order_id = "O1"
    record.discrepancies = 2

    line = ContextFormatter("%(levelname)s - %(message)s").format(record)

    assert line == "INFO - Validation failed | order_id=O1 discrepancies=2"


def test_configure_logging_writes_file(tmp_path):
    configure_logging("DEBUG", log_dir=str(tmp_path), redact_keys=["customername"])
    logger = logging.getLogger("order_migration.test")

    log_with_context(logger, logging.INFO, "Processed order", order_id="O1", customername="Jane Doe")
    for handler in logging.getLogger().handlers:
        handler.flush()

    text = (tmp_path / "order-migration.log").read_text(encoding="utf-8")
    assert "Processed order" in text
    assert "order_id=O1" in text
    assert "Jane Doe" not in text
    assert f"customername={REDACTED}" in text


def test_log_with_context_respects_level(tmp_path):
    configure_logging("WARNING", log_dir=str(tmp_path))
    log_with_context(logging.getLogger("order_migration.test"), logging.INFO, "hidden", order_id="O1")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "hidden" not in (tmp_path / "order-migration.log").read_text(encoding="utf-8")


def test_dated_name():
    assert _dated_name("/logs/order-migration.log.2024-01-31") == "/logs/order-migration_2024-01-31.log"
    assert _dated_name("/logs/order-migration.log") == "/logs/order-migration.log"

"""
Test credential redaction in logs.

Private keys, API secrets and passphrases must never be written by a
handler carrying the redaction filter, including through message args
and formatted tracebacks.
"""

import logging
import logging.config
from io import StringIO

import pytest

from clob_signer.logging_config import LOGGER_NAME, build_logging_config, get_logger, setup_logging
from clob_signer.utils.structured_logging import CredentialRedactionFilter, redact_credentials


PRIVATE_KEY = "0x" + "a" * 64
API_SECRET = "c2VjcmV0LXZhbHVlLXRoYXQtaXMtbG9uZy1lbm91Z2gtdG8tcmVkYWN0"
ADDRESS = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
TOKEN_ID = "71321045679252212594626385532706912750332728571942532289631379312455583992563"


@pytest.fixture
def capture():
    """Logger with a redacting handler writing to a StringIO."""
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.DEBUG)
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.addFilter(CredentialRedactionFilter())
    logger.addHandler(handler)

    yield logger, stream

    logger.removeHandler(handler)


class TestCredentialRedactionFilter:
    """Redaction through a logging handler."""

    def test_private_key_in_message(self, capture):
        logger, stream = capture
        logger.info(f"Processing wallet with key: {PRIVATE_KEY}")

        output = stream.getvalue()
        assert PRIVATE_KEY not in output
        assert "0x[REDACTED]" in output

    def test_private_key_in_args(self, capture):
        logger, stream = capture
        logger.info("Key: %s", PRIVATE_KEY)
        assert PRIVATE_KEY not in stream.getvalue()

    def test_secret_assignment(self, capture):
        logger, stream = capture
        logger.info(f"Loaded credentials secret={API_SECRET}")

        output = stream.getvalue()
        assert API_SECRET not in output
        assert "secret=[REDACTED]" in output

    def test_passphrase_in_header_dict(self, capture):
        logger, stream = capture
        headers = {"POLY_API_KEY": "key", "POLY_PASSPHRASE": "my-passphrase-value"}
        logger.debug(f"Request headers: {headers}")
        assert "my-passphrase-value" not in stream.getvalue()

    def test_long_base64_value(self, capture):
        logger, stream = capture
        logger.info(f"HMAC key {API_SECRET}")

        output = stream.getvalue()
        assert API_SECRET not in output
        assert "[REDACTED]" in output

    def test_traceback_is_redacted(self, capture):
        logger, stream = capture
        try:
            raise ValueError(f"bad key {PRIVATE_KEY}")
        except ValueError:
            logger.exception("Signing failed")

        output = stream.getvalue()
        assert "Signing failed" in output
        assert "ValueError" in output
        assert PRIVATE_KEY not in output

    def test_public_values_are_kept(self, capture):
        logger, stream = capture
        logger.info(f"Built order: maker={ADDRESS} token={TOKEN_ID}")

        output = stream.getvalue()
        assert ADDRESS in output
        assert TOKEN_ID in output

    def test_record_is_never_dropped(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, PRIVATE_KEY, None, None)
        assert CredentialRedactionFilter().filter(record) is True
        assert record.msg == "0x[REDACTED]"


def test_redact_credentials_plain_text():
    assert redact_credentials("") == ""
    assert redact_credentials("nothing to hide") == "nothing to hide"
    assert redact_credentials(f"secret={API_SECRET}") == "secret=[REDACTED]"


class TestLoggingConfig:
    """dictConfig construction."""

    def test_default(self):
        config = build_logging_config()
        assert config["loggers"][LOGGER_NAME]["level"] == "INFO"
        assert config["handlers"]["console"]["filters"] == ["redact_credentials"]

    def test_level_and_json(self):
        config = build_logging_config(level="debug", json_format=True)
        assert config["loggers"][LOGGER_NAME]["level"] == "DEBUG"
        assert all(h["formatter"] == "json" for h in config["handlers"].values())

    def test_default_is_not_mutated(self):
        build_logging_config(level="debug", log_file="x.log", json_format=True)
        assert "file" not in build_logging_config()["handlers"]

    def test_file_handler_redacts(self, tmp_path):
        log_file = tmp_path / "clob.log"
        logging.config.dictConfig(build_logging_config(level="DEBUG", log_file=str(log_file)))
        package_logger = logging.getLogger(LOGGER_NAME)
        try:
            get_logger("test").info(f"Signer key {PRIVATE_KEY}")
            for handler in package_logger.handlers:
                handler.flush()

            content = log_file.read_text()
            assert "Signer key 0x[REDACTED]" in content
            assert PRIVATE_KEY not in content
        finally:
            for handler in list(package_logger.handlers):
                handler.close()
                package_logger.removeHandler(handler)
            package_logger.propagate = True
            package_logger.setLevel(logging.NOTSET)

    @pytest.mark.parametrize("env_level, explicit, expected", [
        ("WARNING", None, logging.WARNING),
        ("WARNING", "ERROR", logging.ERROR),
    ])
    def test_setup_logging_level_from_settings(self, monkeypatch, env_level, explicit, expected):
        monkeypatch.setenv("CLOB_LOG_LEVEL", env_level)
        package_logger = logging.getLogger(LOGGER_NAME)
        try:
            setup_logging(explicit)
            assert package_logger.level == expected
        finally:
            for handler in list(package_logger.handlers):
                handler.close()
                package_logger.removeHandler(handler)
            package_logger.propagate = True
            package_logger.setLevel(logging.NOTSET)

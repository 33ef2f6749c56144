"""
Credential redaction for log output.

Private keys, API secrets and passphrases must never reach a log sink,
whether through a message, its args or a formatted traceback.
"""

import logging
import re


class CredentialRedactionFilter(logging.Filter):
    """
    Security filter that redacts credentials from log messages.

    - Redacts Ethereum private keys (0x followed by 64 hex chars)
    - Redacts API secrets and passphrases (``secret=...``, ``'POLY_PASSPHRASE': '...'``)
    - Redacts long base64 strings (API secrets, HMAC signatures)

    Usage:
        >>> handler = logging.StreamHandler()
        >>> handler.addFilter(CredentialRedactionFilter())
        >>> logger.addHandler(handler)
    """

    PRIVATE_KEY_PATTERN = re.compile(r'0x[0-9a-fA-F]{64}')
    # Keep the prefix (secret=), replace the value
    API_SECRET_PATTERN = re.compile(
        r'((?:secret|passphrase|password|private_key)["\']?\s*[:=]\s*["\']?)[a-zA-Z0-9+/=_\-]{8,}["\']?',
        re.IGNORECASE
    )
    BASE64_SECRET_PATTERN = re.compile(r'[A-Za-z0-9+/_\-]{40,}={0,2}')
    # Addresses and token IDs are public and match the base64 pattern
    PUBLIC_VALUE_PATTERN = re.compile(r'(?:0x[0-9a-fA-F]{40}|[0-9]+)')

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Redact credentials from log record.

        Returns:
            Always True (record is never filtered out, just sanitized)
        """
        if record.msg:
            record.msg = redact_credentials(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: redact_credentials(str(v))
                    for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    redact_credentials(str(arg))
                    for arg in record.args
                )

        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = redact_credentials(record.exc_text)

        return True


def redact_credentials(text: str) -> str:
    """
    Redact all credential patterns from text.

    Examples:
        >>> redact_credentials("secret=c2VjcmV0LXZhbHVlLXRoYXQtaXMtbG9uZw==")
        'secret=[REDACTED]'
    """
    if not text:
        return text

    # Private keys first: a 0x-prefixed key would otherwise only be partially masked
    text = CredentialRedactionFilter.PRIVATE_KEY_PATTERN.sub('0x[REDACTED]', text)
    text = CredentialRedactionFilter.API_SECRET_PATTERN.sub(r'\1[REDACTED]', text)
    text = CredentialRedactionFilter.BASE64_SECRET_PATTERN.sub(_redact_base64, text)
    return text


def _redact_base64(match: re.Match) -> str:
    value = match.group(0)
    if CredentialRedactionFilter.PUBLIC_VALUE_PATTERN.fullmatch(value):
        return value
    return value[:8] + '...[REDACTED]'

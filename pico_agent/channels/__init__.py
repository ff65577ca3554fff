"""Messaging channel helpers that turn inbound payloads into canonical turns."""

from .wecom import (
    DecryptedEnvelope,
    SignatureMismatch,
    WeComCrypto,
    WeComCryptoError,
    decrypt_envelope,
    decrypt_message,
    verify_signature,
)

__all__ = [
    "WeComCrypto",
    "WeComCryptoError",
    "SignatureMismatch",
    "DecryptedEnvelope",
    "verify_signature",
    "decrypt_message",
    "decrypt_envelope",
]

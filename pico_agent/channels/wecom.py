"""WeCom callback crypto shared by the WeCom bot and app channels.

A WeCom callback carries a signature, timestamp, nonce and a base64 payload
that is either plain or AES-CBC encrypted. The decrypted plaintext layout is
``random(16) + msg_len(4, big-endian) + msg + receive_id``.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import struct
from dataclasses import dataclass

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..data_structures import Message

__all__ = [
    "BLOCK_SIZE",
    "WeComCryptoError",
    "SignatureMismatch",
    "DecryptedEnvelope",
    "WeComCrypto",
    "compute_signature",
    "verify_signature",
    "pkcs7_unpad",
    "decrypt_envelope",
    "decrypt_message",
]

BLOCK_SIZE = 16
_RANDOM_PREFIX = 16
_HEADER = _RANDOM_PREFIX + 4


class WeComCryptoError(ValueError):
    """A WeCom payload could not be decoded or decrypted."""


class SignatureMismatch(WeComCryptoError):
    """The callback signature does not match the configured token."""


@dataclass(frozen=True)
class DecryptedEnvelope:
    """Decrypted callback payload."""

    message: str
    receive_id: str = ""


def compute_signature(token: str, timestamp: str, nonce: str, payload: str) -> str:
    """SHA-1 hex digest of the lexicographically sorted, concatenated fields."""
    joined = "".join(sorted([token, timestamp, nonce, payload]))
    return hashlib.sha1(joined.encode("utf-8")).hexdigest()


def verify_signature(
    token: str, signature: str, timestamp: str, nonce: str, payload: str
) -> bool:
    """Verify a callback signature.

    With no token configured there is nothing to compare against and the
    message is treated as verified.
    """
    if not token:
        return True
    expected = compute_signature(token, timestamp, nonce, payload)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


def pkcs7_unpad(data: bytes) -> bytes:
    """Strip PKCS#7 padding, validating every padding byte.

    Raises:
        WeComCryptoError: If the padding is malformed
    """
    if not data:
        return data
    padding = data[-1]
    if padding == 0 or padding > BLOCK_SIZE:
        raise WeComCryptoError(f"invalid padding size: {padding}")
    if padding > len(data):
        raise WeComCryptoError("padding size larger than data")
    for i in range(padding):
        if data[-1 - i] != padding:
            raise WeComCryptoError(f"invalid padding byte at position {i}")
    return data[:-padding]


def _b64decode(value: str, what: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise WeComCryptoError(f"failed to decode {what}: {e}") from e


def _decode_aes_key(encoding_aes_key: str) -> bytes:
    # WeCom hands out the 32-byte key as 43 base64 chars without padding
    padded = encoding_aes_key + "=" * (-len(encoding_aes_key) % 4)
    return _b64decode(padded, "AES key")


def decrypt_envelope(payload: str, encoding_aes_key: str) -> DecryptedEnvelope:
    """Decrypt a callback payload and split off the receiver id.

    Args:
        payload: Base64 payload from the callback
        encoding_aes_key: Configured EncodingAESKey; empty for plain mode

    Returns:
        DecryptedEnvelope with the message and the trailing receiver id

    Raises:
        WeComCryptoError: If decoding, decryption or unpadding fails
    """
    if not encoding_aes_key:
        # Plain mode: the payload is only base64-encoded
        return DecryptedEnvelope(message=_decode_text(_b64decode(payload, "message")))

    aes_key = _decode_aes_key(encoding_aes_key)
    cipher_text = _b64decode(payload, "message")

    try:
        cipher = Cipher(algorithms.AES(aes_key), modes.CBC(aes_key[:BLOCK_SIZE]))
    except ValueError as e:
        raise WeComCryptoError(f"failed to create cipher: {e}") from e

    if len(cipher_text) < BLOCK_SIZE:
        raise WeComCryptoError("ciphertext too short")
    if len(cipher_text) % BLOCK_SIZE:
        raise WeComCryptoError("ciphertext is not a multiple of the block size")

    decryptor = cipher.decryptor()
    plain_text = pkcs7_unpad(decryptor.update(cipher_text) + decryptor.finalize())

    if len(plain_text) < _HEADER:
        raise WeComCryptoError("decrypted message too short")

    (msg_len,) = struct.unpack(">I", plain_text[_RANDOM_PREFIX:_HEADER])
    if msg_len > len(plain_text) - _HEADER:
        raise WeComCryptoError("invalid message length")

    message = plain_text[_HEADER : _HEADER + msg_len]
    receive_id = plain_text[_HEADER + msg_len :]
    return DecryptedEnvelope(
        message=_decode_text(message), receive_id=_decode_text(receive_id)
    )


def decrypt_message(payload: str, encoding_aes_key: str) -> str:
    """Decrypt a callback payload and return only the message text."""
    return decrypt_envelope(payload, encoding_aes_key).message


def _decode_text(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise WeComCryptoError(f"message is not valid UTF-8: {e}") from e


@dataclass(frozen=True)
class WeComCrypto:
    """Configured WeCom channel secrets.

    Attributes:
        token: Callback token used for signatures (empty disables checks)
        encoding_aes_key: EncodingAESKey (empty means plain payloads)
    """

    token: str = ""
    encoding_aes_key: str = ""

    def verify(self, signature: str, timestamp: str, nonce: str, payload: str) -> bool:
        return verify_signature(self.token, signature, timestamp, nonce, payload)

    def open_message(
        self, signature: str, timestamp: str, nonce: str, payload: str
    ) -> Message:
        """Verify and decrypt a callback into a canonical user turn.

        Raises:
            SignatureMismatch: If the signature does not verify
            WeComCryptoError: If the payload cannot be decrypted
        """
        if not self.verify(signature, timestamp, nonce, payload):
            raise SignatureMismatch("callback signature mismatch")
        return Message.user(decrypt_message(payload, self.encoding_aes_key))

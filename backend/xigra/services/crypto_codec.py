"""
Passphrase AES codec compatible with CryptoJS.

The upload client calls ``CryptoJS.AES.encrypt(base64(fileBytes), secret)``.
That produces the OpenSSL envelope ``base64("Salted__" + salt8 + ciphertext)``
with key and IV derived by EVP_BytesToKey (MD5, one round) and AES-256-CBC
with PKCS#7 padding. Decryption reverses every layer and validates each one,
so a wrong secret or damaged upload raises instead of producing garbage.
"""

import base64
import binascii
import logging
import os
from typing import Tuple, Union

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from xigra.core.errors import DecryptionError

logger = logging.getLogger(__name__)

SALT_MAGIC = b"Salted__"
SALT_SIZE = 8
KEY_SIZE = 32
IV_SIZE = 16
BLOCK_BITS = 128

Secret = Union[str, bytes]


def _as_bytes(key: Secret) -> bytes:
    return key.encode("utf-8") if isinstance(key, str) else key


def evp_bytes_to_key(passphrase: bytes, salt: bytes) -> Tuple[bytes, bytes]:
    """OpenSSL EVP_BytesToKey with MD5 and a single iteration."""
    derived = b""
    block = b""
    while len(derived) < KEY_SIZE + IV_SIZE:
        digest = hashes.Hash(hashes.MD5())
        digest.update(block + passphrase + salt)
        block = digest.finalize()
        derived += block
    return derived[:KEY_SIZE], derived[KEY_SIZE:KEY_SIZE + IV_SIZE]


def decrypt(ciphertext_text: str, key: Secret) -> bytes:
    """
    Decrypt an uploaded blob into the original file bytes.

    Args:
        ciphertext_text: the ``.enc`` file content as text
        key: shared passphrase

    Raises:
        DecryptionError: with ``stage`` set to envelope, padding, encoding
            or payload depending on which layer was rejected
    """
    try:
        raw = base64.b64decode(ciphertext_text.strip(), validate=True)
    except (binascii.Error, ValueError):
        raise DecryptionError("Ciphertext is not valid base64", stage="envelope")

    if not raw.startswith(SALT_MAGIC) or len(raw) <= len(SALT_MAGIC) + SALT_SIZE:
        raise DecryptionError("Ciphertext is missing the salted header", stage="envelope")

    salt = raw[len(SALT_MAGIC):len(SALT_MAGIC) + SALT_SIZE]
    body = raw[len(SALT_MAGIC) + SALT_SIZE:]
    if len(body) % (BLOCK_BITS // 8):
        raise DecryptionError("Ciphertext length is not a whole number of blocks", stage="envelope")

    aes_key, iv = evp_bytes_to_key(_as_bytes(key), salt)
    decryptor = Cipher(algorithms.AES(aes_key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(body) + decryptor.finalize()

    unpadder = padding.PKCS7(BLOCK_BITS).unpadder()
    try:
        text_bytes = unpadder.update(padded) + unpadder.finalize()
    except ValueError:
        # Almost always a wrong key
        raise DecryptionError("Bad padding after decryption (wrong key?)", stage="padding")

    try:
        payload = text_bytes.decode("utf-8")
    except UnicodeDecodeError:
        raise DecryptionError("Decrypted data is not UTF-8 text (wrong key?)", stage="encoding")

    if not payload:
        raise DecryptionError("Decrypted payload is empty", stage="payload")

    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise DecryptionError("Decrypted payload is not base64 (corrupt upload?)", stage="payload")


def encrypt(plaintext: bytes, key: Secret, salt: bytes = None) -> str:
    """Produce the same envelope the upload client sends."""
    salt = salt if salt is not None else os.urandom(SALT_SIZE)
    if len(salt) != SALT_SIZE:
        raise ValueError(f"salt must be {SALT_SIZE} bytes")

    aes_key, iv = evp_bytes_to_key(_as_bytes(key), salt)
    payload = base64.b64encode(plaintext)

    padder = padding.PKCS7(BLOCK_BITS).padder()
    padded = padder.update(payload) + padder.finalize()
    encryptor = Cipher(algorithms.AES(aes_key), modes.CBC(iv)).encryptor()
    body = encryptor.update(padded) + encryptor.finalize()

    return base64.b64encode(SALT_MAGIC + salt + body).decode("ascii")


class CryptoCodec:
    """Codec bound to the configured shared secret."""

    def __init__(self, secret: Secret):
        self._secret = _as_bytes(secret)

    def decrypt(self, ciphertext_text: str) -> bytes:
        return decrypt(ciphertext_text, self._secret)

    def encrypt(self, plaintext: bytes) -> str:
        return encrypt(plaintext, self._secret)

    def __repr__(self) -> str:
        return "CryptoCodec(secret=***)"

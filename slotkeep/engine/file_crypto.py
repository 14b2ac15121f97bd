"""Password-based encryption for slot files at rest.

Blob layout: MAGIC | salt | nonce | AES-GCM ciphertext with tag.
"""

from __future__ import annotations

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

MAGIC = b"SKE1"
SALT_SIZE = 16
NONCE_SIZE = 12
KEY_SIZE = 32
KDF_ITERATIONS = 200_000


class FileDecryptionError(ValueError):
    pass


def derive_key(password: str, salt: bytes, iterations: int = KDF_ITERATIONS) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8"))


def encrypt_text(text: str, password: str, iterations: int = KDF_ITERATIONS) -> bytes:
    if not password:
        raise ValueError("password must not be empty")
    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    key = derive_key(password, salt, iterations)
    ciphertext = AESGCM(key).encrypt(nonce, text.encode("utf-8"), MAGIC)
    return MAGIC + salt + nonce + ciphertext


def decrypt_bytes(blob: bytes, password: str, iterations: int = KDF_ITERATIONS) -> bytes:
    header = len(MAGIC) + SALT_SIZE + NONCE_SIZE
    if len(blob) <= header or not blob.startswith(MAGIC):
        raise FileDecryptionError("Not an encrypted save file")
    salt = blob[len(MAGIC) : len(MAGIC) + SALT_SIZE]
    nonce = blob[len(MAGIC) + SALT_SIZE : header]
    key = derive_key(password, salt, iterations)
    try:
        return AESGCM(key).decrypt(nonce, blob[header:], MAGIC)
    except InvalidTag as exc:
        raise FileDecryptionError("Wrong password or tampered save file") from exc


def decrypt_text(blob: bytes, password: str, iterations: int = KDF_ITERATIONS) -> str:
    plaintext = decrypt_bytes(blob, password, iterations)
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FileDecryptionError("Decrypted save file is not UTF-8") from exc

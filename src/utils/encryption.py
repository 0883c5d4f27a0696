"""
Encryption of stored network credentials.

Credentials are serialized to JSON and stored as a Fernet token. The
Fernet key is derived from ENCRYPTION_KEY (SHA-256, url-safe base64),
so any passphrase works as a key.
"""

import base64
import hashlib
import json
from typing import Any, Dict, Optional

from cryptography.fernet import Fernet, InvalidToken

from src.config import settings


class CredentialEncryptionError(Exception):
    """Encryption key missing, or a stored token cannot be decrypted."""


def _fernet(key: Optional[str] = None) -> Fernet:
    key = key if key is not None else settings.encryption_key
    if not key:
        raise CredentialEncryptionError("ENCRYPTION_KEY is not set")
    derived = hashlib.sha256(key.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(derived))


def encrypt_credentials(credentials: Dict[str, Any], key: Optional[str] = None) -> str:
    payload = json.dumps(credentials, sort_keys=True).encode("utf-8")
    return _fernet(key).encrypt(payload).decode("ascii")


def decrypt_credentials(token: str, key: Optional[str] = None) -> Dict[str, Any]:
    try:
        payload = _fernet(key).decrypt(token.encode("ascii"))
    except InvalidToken as e:
        raise CredentialEncryptionError("Stored credentials cannot be decrypted") from e
    return json.loads(payload)

"""Utility functions."""

from src.utils.audit import get_client_ip, log_action
from src.utils.encryption import (
    CredentialEncryptionError,
    decrypt_credentials,
    encrypt_credentials,
)
from src.utils.password import generate_password, hash_password, verify_password

__all__ = [
    "hash_password",
    "verify_password",
    "generate_password",
    "log_action",
    "get_client_ip",
    "encrypt_credentials",
    "decrypt_credentials",
    "CredentialEncryptionError",
]

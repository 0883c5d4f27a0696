"""
Tests for stored credential encryption.
"""

import pytest

from src.utils.encryption import CredentialEncryptionError, decrypt_credentials, encrypt_credentials


def test_encrypts_and_decrypts():
    creds = {"partner_id": "123", "sign_key": "secret"}
    token = encrypt_credentials(creds, key="passphrase")

    assert "secret" not in token
    assert decrypt_credentials(token, key="passphrase") == creds


def test_wrong_key_rejected():
    token = encrypt_credentials({"oauth_token": "abc"}, key="one")
    with pytest.raises(CredentialEncryptionError):
        decrypt_credentials(token, key="two")


def test_missing_key_rejected():
    with pytest.raises(CredentialEncryptionError):
        encrypt_credentials({"oauth_token": "abc"}, key="")

"""Encryption for bot tokens at rest.

Uses Fernet symmetric encryption (AES-128-CBC with HMAC-SHA256). Every call to
encrypt draws a fresh random IV, which Fernet stores inside the token, so equal
plaintexts never produce equal ciphertexts.

Generate a key:
    python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
"""

from cryptography.fernet import Fernet, InvalidToken

from feedback_bot.errors import StorageError


class TokenCipher:
    """Encrypts and decrypts access tokens with a configured Fernet key.

    Unlike a pass-through fallback, a missing or malformed key is a startup
    error: tokens are never written in plaintext.
    """

    def __init__(self, key: str) -> None:
        if not key:
            raise ValueError("token_encryption_key is not configured")
        try:
            self._fernet = Fernet(key.encode())
        except (ValueError, TypeError) as exc:
            raise ValueError("token_encryption_key has invalid format") from exc

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a stored token.

        Raises:
            StorageError: If the ciphertext was not produced with this key.
        """
        try:
            return self._fernet.decrypt(ciphertext.encode()).decode()
        except InvalidToken as exc:
            raise StorageError("Stored access token could not be decrypted") from exc

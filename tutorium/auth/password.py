"""Password hashing utilities using bcrypt.

Also generates the one-time passwords handed out when an admin or a
teacher creates an account on someone else's behalf.

Example:
    >>> hasher = PasswordHasher(rounds=4)
    >>> hashed = hasher.hash("my_password")
    >>> hasher.verify("my_password", hashed)
    True
"""

import logging
import secrets
import string

import bcrypt

from tutorium.config import settings

logger = logging.getLogger(__name__)

SPECIAL_CHARACTERS = "!@#$%^&*"
PASSWORD_ALPHABET = string.ascii_letters + string.digits + SPECIAL_CHARACTERS


class PasswordHasher:
    """Secure password hashing using bcrypt.

    Attributes:
        _rounds: Number of bcrypt rounds for hashing.
    """

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt.

        Raises:
            ValueError: If password is empty.
        """
        if not password:
            raise ValueError("Password cannot be empty")

        salt = bcrypt.gensalt(rounds=self._rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against a hash.

        Returns:
            True if password matches the hash, False otherwise (including
            for empty input or a malformed hash).
        """
        if not password or not password_hash:
            return False

        try:
            return bcrypt.checkpw(
                password.encode("utf-8"),
                password_hash.encode("utf-8"),
            )
        except ValueError as e:
            logger.warning("Password verification failed: %s", str(e))
            return False


def generate_password(length: int = 12) -> str:
    """Generate a random password for a newly provisioned account.

    The result always holds at least one lowercase letter, one uppercase
    letter, one digit and one of ``!@#$%^&*``; the remaining characters are
    drawn from the full alphabet and the whole string is shuffled.
    """
    if length < 4:
        raise ValueError("Password length must be at least 4")

    rng = secrets.SystemRandom()
    chars = [
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.digits),
        secrets.choice(SPECIAL_CHARACTERS),
    ]
    chars.extend(secrets.choice(PASSWORD_ALPHABET) for _ in range(length - 4))
    rng.shuffle(chars)
    return "".join(chars)


# Default instance for convenience
password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)


def hash_password(password: str) -> str:
    return password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return password_hasher.verify(password, password_hash)

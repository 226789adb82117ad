"""
Hashing utilities for temporary student credentials
"""

import secrets
import string

import bcrypt


class PasswordHasher:
    """Secure password hashing utilities"""

    DEFAULT_ROUNDS = 12

    @classmethod
    def hash_password(cls, password: str, rounds: int = None) -> str:
        """Hash password using bcrypt"""
        if rounds is None:
            rounds = cls.DEFAULT_ROUNDS

        salt = bcrypt.gensalt(rounds=rounds)
        hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
        return hashed.decode('utf-8')

    @classmethod
    def verify_password(cls, password: str, hashed_password: str) -> bool:
        """Verify password against hash"""
        try:
            return bcrypt.checkpw(
                password.encode('utf-8'),
                hashed_password.encode('utf-8')
            )
        except ValueError:
            return False

    @classmethod
    def generate_temporary_password(cls, length: int = 10) -> str:
        """
        Generate a readable temporary password.

        Always contains at least one upper-case letter, one lower-case letter
        and one digit so it passes the portal's password policy on first login.
        """
        length = max(length, 6)
        required = [
            secrets.choice(string.ascii_uppercase),
            secrets.choice(string.ascii_lowercase),
            secrets.choice(string.digits),
        ]
        characters = string.ascii_letters + string.digits
        rest = [secrets.choice(characters) for _ in range(length - len(required))]
        chars = required + rest
        secrets.SystemRandom().shuffle(chars)
        return ''.join(chars)

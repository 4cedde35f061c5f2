"""Password hashing with bcrypt."""

import bcrypt

# bcrypt only reads the first 72 bytes; newer releases raise instead of truncating
BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """One-way hash and compare for password accounts."""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password=_encode(password), salt=salt).decode("utf-8")

    @staticmethod
    def verify(password: str, hashed_pw: str | None) -> bool:
        """Verify that a password matches a stored hash"""
        if not hashed_pw:
            return False
        try:
            return bcrypt.checkpw(
                password=_encode(password),
                hashed_password=hashed_pw.encode("utf-8"),
            )
        except ValueError:
            # malformed stored hash
            return False


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]

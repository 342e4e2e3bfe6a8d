"""Password hashing helpers (pbkdf2_hmac); stored as "<hex digest>$<salt>" """

import hashlib
import secrets

ITERATIONS = 100_000


def _digest(password: str, salt: str) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), ITERATIONS).hex()


def hash_password(password: str, salt: str | None = None) -> str:
    salt = salt or secrets.token_hex(16)
    return f"{_digest(password, salt)}${salt}"


def verify_password(password: str, stored: str) -> bool:
    digest, sep, salt = stored.partition("$")
    if not sep:
        return False
    return secrets.compare_digest(_digest(password, salt), digest)

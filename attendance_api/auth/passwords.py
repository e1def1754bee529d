from functools import lru_cache

import bcrypt

from attendance_api.core.config import DEFAULT_BCRYPT_ROUNDS

# bcrypt only looks at the first 72 bytes of its input.
BCRYPT_MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValueError(f"Passwords must be {BCRYPT_MAX_PASSWORD_BYTES} bytes or fewer.")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Compare a plaintext password against a stored bcrypt hash.

    Raises ValueError when the stored hash is not a usable bcrypt hash.
    """
    try:
        encoded = password.encode("utf-8")
    except UnicodeEncodeError:
        # Lone surrogates cannot be hashed, so they never match a stored hash.
        return False
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(encoded, hashed.encode("utf-8"))


@lru_cache(maxsize=None)
def dummy_hash(rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    return hash_password("unknown-account-placeholder", rounds)

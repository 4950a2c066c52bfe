"""bcrypt password hashing for au_gateway users.

bcrypt only looks at the first 72 bytes of its input; longer passwords are
rejected at the schema layer (RegisterRequest) rather than silently cut.
"""

import bcrypt

BCRYPT_MAX_BYTES = 72


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """False for a mismatch or for a stored hash bcrypt cannot parse."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False

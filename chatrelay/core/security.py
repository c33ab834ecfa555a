import bcrypt

from chatrelay.utils.logger import get_logger

logger = get_logger("chatrelay.core.security")

# bcrypt ignores everything past 72 bytes
BCRYPT_MAX_BYTES = 72


# ------ Password Hashing -----
def hash_password(password: str, rounds: int = 10) -> str:
    """Hash password with a fresh bcrypt salt. Safely handles the 72-byte limit.

    Returns the hash as a string for database storage.
    """
    password_bytes = password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    if not password_bytes:
        raise ValueError("Password cannot be empty")

    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time check of a password against a stored bcrypt hash."""
    password_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    if not password_bytes or not hashed_password:
        return False

    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.warning("Stored password hash is malformed")
        return False

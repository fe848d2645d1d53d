import bcrypt

from storefront.errors import PasswordTooLong

# bcrypt ignores (or, since 5.0, refuses) anything past 72 bytes
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password using bcrypt"""
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise PasswordTooLong(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(raw, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash"""
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        # nothing that long was ever hashed
        return False
    try:
        return bcrypt.checkpw(raw, password_hash.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False

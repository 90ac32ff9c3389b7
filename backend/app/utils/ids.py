"""Record id generation"""
import secrets
import string

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 15


def generate_id() -> str:
    """Random 15-character id over [a-z0-9]"""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


def normalize_email(email: str) -> str:
    """Canonical form of an email used as a natural key"""
    return (email or "").strip().lower()

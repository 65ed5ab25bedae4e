import bcrypt

from flix.core.config import settings


def hash_password(password: str) -> str:
    """Hash bcrypt (sel inclus dans le résultat)."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # hash illisible ou mot de passe > 72 octets
        return False

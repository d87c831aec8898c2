from __future__ import annotations

from passlib.context import CryptContext


DEFAULT_ROUNDS = 10


def make_context(rounds: int = DEFAULT_ROUNDS) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


pwd_context = make_context()


def hash_password(password: str, context: CryptContext | None = None) -> str:
    """Hash a plaintext password with bcrypt."""
    return (context or pwd_context).hash(password)


def verify_password(password: str, hashed: str, context: CryptContext | None = None) -> bool:
    return (context or pwd_context).verify(password, hashed)

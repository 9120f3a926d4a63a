"""Password hashing (bcrypt through passlib)"""

from passlib.context import CryptContext

DEFAULT_ROUNDS = 12


def create_password_context(rounds: int = DEFAULT_ROUNDS) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


pwd_context = create_password_context()


def get_password_hash(password: str, context: CryptContext = None) -> str:
    return (context or pwd_context).hash(password)


def verify_password(plain_password: str, hashed_password: str, context: CryptContext = None) -> bool:
    return (context or pwd_context).verify(plain_password, hashed_password)

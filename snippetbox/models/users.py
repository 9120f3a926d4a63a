# snippetbox/models/users.py
import logging

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from snippetbox.core.exceptions import DuplicateEmailError, InvalidCredentialsError
from snippetbox.core.security.passwords import verify_password
from snippetbox.models.database import Database, User, utc_now

logger = logging.getLogger(__name__)


class UserModel:
    def __init__(self, db: Database, pwd_context: CryptContext = None):
        self.db = db
        self.pwd_context = pwd_context

    def insert(self, name: str, email: str, hashed_password: str) -> None:
        """Create a user. Raises DuplicateEmailError when the email is taken."""
        user = User(name=name, email=email, hashed_password=hashed_password, created=utc_now())
        try:
            with self.db.session_factory() as session, session.begin():
                session.add(user)
        except IntegrityError as e:
            if "email" in str(e.orig).lower():
                raise DuplicateEmailError(email=email) from e
            raise

    def authenticate(self, email: str, password: str) -> int:
        """Return the id of the user with these credentials"""
        stmt = select(User.id, User.hashed_password).where(User.email == email)
        with self.db.session_factory() as session:
            row = session.execute(stmt).first()

        if row is None:
            raise InvalidCredentialsError()

        if not verify_password(password, row.hashed_password, self.pwd_context):
            logger.debug(f"Password mismatch for user {row.id}")
            raise InvalidCredentialsError()

        return row.id

    def exists(self, user_id: int) -> bool:
        stmt = select(User.id).where(User.id == user_id)
        with self.db.session_factory() as session:
            return session.scalar(stmt) is not None

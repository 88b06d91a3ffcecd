import datetime
import logging
import time
import uuid
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession
from passlib.hash import hex_sha256

from .config import settings
from .models import User, Session, utcnow

logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class RegistrationError(Exception):
    message = "Username or email already exists"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class DuplicateUsername(RegistrationError):
    message = "Username already exists"


class DuplicateEmail(RegistrationError):
    message = "Email already registered"


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    # Unsalted: equal passwords give equal digests across users.
    return hex_sha256.hash(password + settings.password_secret)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return hex_sha256.verify(password + settings.password_secret, password_hash)
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

def _base36(number: int) -> str:
    digits = ""
    while True:
        number, rem = divmod(number, 36)
        digits = _BASE36[rem] + digits
        if number == 0:
            return digits


def generate_token() -> str:
    return f"{uuid.uuid4()}-{_base36(int(time.time() * 1000))}"


def issue_session(db: DBSession, user_id: int) -> Session:
    """Add a fixed-lifetime session for ``user_id``. The caller commits."""
    now = utcnow()
    session = Session(
        user_id=user_id,
        token=generate_token(),
        created_at=now,
        expires_at=now + datetime.timedelta(days=settings.session_days),
    )
    db.add(session)
    db.flush()
    return session


def resolve_session(db: DBSession, token: str) -> Optional[int]:
    """Return the owning user id of a live session, or None."""
    session = (
        db.query(Session)
        .filter(Session.token == token, Session.expires_at > utcnow())
        .first()
    )
    if not session:
        return None
    return session.user_id


def revoke_session(db: DBSession, token: str) -> None:
    deleted = db.query(Session).filter(Session.token == token).delete(synchronize_session=False)
    db.commit()
    if deleted:
        logger.info("Session revoked")


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

def get_user_by_username(db: DBSession, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def get_user_by_email(db: DBSession, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def get_user_by_id(db: DBSession, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def register(db: DBSession, username: str, email: str, password: str) -> Session:
    """
    Create a user and its first session in a single transaction.

    If issuing the session fails, the user row is rolled back along with it,
    so a retried registration starts from a clean slate.
    """
    if get_user_by_username(db, username):
        raise DuplicateUsername()
    if get_user_by_email(db, email):
        raise DuplicateEmail()

    user = User(username=username, email=email, password_hash=hash_password(password))
    db.add(user)
    try:
        db.flush()
    except IntegrityError as exc:
        # Lost a race against a concurrent registration
        db.rollback()
        raise RegistrationError() from exc

    session = issue_session(db, user.id)
    db.commit()
    logger.info("Registered user %s (id=%s)", user.username, user.id)
    return session


def authenticate(db: DBSession, username: str, password: str) -> Optional[Session]:
    """Issue a new session for valid credentials, None otherwise."""
    user = get_user_by_username(db, username)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login for %r", username)
        return None

    session = issue_session(db, user.id)
    db.commit()
    return session


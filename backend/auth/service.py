# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Account lifecycle – registration, email verification, login, profile update
and the admin-only role / deletion operations.

State machine
-------------
    register ──► unverified (code set) ──verify──► verified (code NULL)
        │
        └─ code delivery fails ──► account deleted, DeliveryError

Security notes
--------------
* Login returns the *same* error for an unknown email and a wrong password.
  The "not verified" answer is only given once the password has matched, so
  it reveals nothing to someone who does not know the password.
* The verified flag is flipped with a conditional UPDATE, so of two
  concurrent correct submissions exactly one succeeds.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import BackgroundTasks, Depends
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.activity import ActivityRecorder, get_activity
from core.exceptions import (
    AlreadyVerifiedError,
    ConflictError,
    DeliveryError,
    InvalidCodeError,
    InvalidCredentialsError,
    NotFoundError,
    UnverifiedError,
    ValidationError,
)
from core.logger import logger
from core.mailer import Mailer, get_mailer
from core.security import (
    generate_verification_code,
    hash_password,
    is_valid_id,
    parse_id,
    verify_password,
)
from core.storage import LocalArtifactStorage, get_storage
from core.tasks import schedule
from database import get_db
from models.paper import ResearchPaper
from models.user import User


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class AccountService:
    def __init__(
        self,
        db: Session,
        mailer: Optional[Mailer] = None,
        activity: Optional[ActivityRecorder] = None,
        storage: Optional[LocalArtifactStorage] = None,
        background_tasks: Optional[BackgroundTasks] = None,
    ):
        self.db = db
        self.mailer = mailer
        self.activity = activity
        self.storage = storage
        self.background_tasks = background_tasks

    # -- helpers -----------------------------------------------------------

    def _record(self, action: str, user_id: Optional[str], details: str = "") -> None:
        if self.activity is not None:
            self.activity.record(action, user_id, details)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == normalize_email(email)).first()

    def get(self, account_id: Optional[str]) -> User:
        user = self.db.get(User, account_id) if is_valid_id(account_id) else None
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _discard_unverified(self, user: User) -> None:
        """Compensating delete after failed delivery.  Failure is only logged."""
        email = user.email
        try:
            self.db.delete(user)
            self.db.commit()
            logger.warning("Registration for %s rolled back: code could not be delivered", email)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Rollback of unverified account %s failed", email)

    # -- registration ------------------------------------------------------

    def register(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> User:
        if _blank(name) or _blank(email) or not password:
            raise ValidationError("Name, email and password are required")

        email = normalize_email(email)
        if self.find_by_email(email) is not None:
            raise ConflictError("User already exists")

        user = User(
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            verified=False,
            verification_code=generate_verification_code(),
            is_admin=False,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            self.db.rollback()
            raise ConflictError("User already exists")
        self.db.refresh(user)

        try:
            self.mailer.send_verification_code(user.email, user.name, user.verification_code)
        except DeliveryError:
            self._discard_unverified(user)
            raise
        except Exception as exc:
            logger.exception("Unexpected mailer failure for %s", email)
            self._discard_unverified(user)
            raise DeliveryError() from exc

        logger.info("Registered account %s (%s), awaiting verification", user.id, email)
        self._record("User Registered", user.id, f"New registration: {email}")
        return user

    def verify(self, email: Optional[str], code: Optional[str]) -> User:
        if _blank(email) or _blank(code):
            raise ValidationError("Email and code are required")

        user = self.find_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        if user.verified:
            raise AlreadyVerifiedError()

        code = code.strip()
        if user.verification_code != code:
            raise InvalidCodeError()

        # Compare-and-set: only an unverified row holding this code flips
        updated = (
            self.db.query(User)
            .filter(
                User.id == user.id,
                User.verified == False,  # noqa: E712
                User.verification_code == code,
            )
            .update({User.verified: True, User.verification_code: None}, synchronize_session=False)
        )
        self.db.commit()
        if updated == 0:
            raise AlreadyVerifiedError()

        self.db.refresh(user)
        logger.info("Account %s verified", user.id)
        self._record("User Verified", user.id, f"Email verified: {user.email}")
        return user

    # -- login -------------------------------------------------------------

    def login(self, email: Optional[str], password: Optional[str]) -> User:
        if _blank(email) or not password:
            raise ValidationError("Email and password are required")

        user = self.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", normalize_email(email))
            if user is not None:
                self._record("Failed Login", user.id, "Incorrect password")
            else:
                self._record("Failed Login", None, f"Unknown email: {normalize_email(email)}")
            raise InvalidCredentialsError()

        if not user.verified:
            raise UnverifiedError()

        user.last_login = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(user)
        self._record("User Login", user.id, f"{user.email} logged in")
        return user

    # -- profile -----------------------------------------------------------

    def update_profile(
        self,
        account_id: Optional[str],
        name: Optional[str] = None,
        current_password: Optional[str] = None,
        new_password: Optional[str] = None,
        new_image=None,
    ) -> User:
        """
        Apply only the supplied, changed fields.  *new_image* is any object
        with ``filename`` and ``file`` attributes (e.g. an UploadFile); it is
        stored only after every other check has passed.
        """
        parse_id(account_id, "user ID")
        user = self.get(account_id)

        changes = []
        if not _blank(name) and name.strip() != user.name:
            user.name = name.strip()
            changes.append("name")

        if new_password:
            if not current_password:
                raise ValidationError("Current password is required to set a new password")
            if not verify_password(current_password, user.password_hash):
                raise InvalidCredentialsError("Current password is incorrect")
            user.password_hash = hash_password(new_password)
            changes.append("password")

        old_image = new_image_url = None
        if new_image is not None and getattr(new_image, "filename", None):
            old_image = user.profile_image
            new_image_url = self.storage.save(new_image.filename, new_image.file, subdir="profiles")
            user.profile_image = new_image_url
            changes.append("profileImage")

        if not changes:
            return user

        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            if new_image_url:
                self.storage.discard(new_image_url)
            raise
        self.db.refresh(user)

        if old_image and self.storage is not None:
            schedule(
                self.background_tasks,
                "discard:profile-image",
                self.storage.discard,
                old_image,
            )

        logger.info("Account %s updated: %s", user.id, ", ".join(changes))
        self._record("Profile Updated", user.id, "Changed " + ", ".join(changes))
        return user

    # -- admin operations --------------------------------------------------

    def stats(self) -> dict:
        return {
            "total_users": self.db.query(User).count(),
            "total_papers": self.db.query(ResearchPaper).count(),
            "verified_users": self.db.query(User).filter(User.verified == True).count(),  # noqa: E712
            "server_time": datetime.now(timezone.utc),
        }

    def list_accounts(self) -> list[User]:
        """Every account, newest first."""
        return self.db.query(User).order_by(User.created_at.desc()).all()

    def set_admin_role(self, target_id: str, is_admin: bool, admin: User) -> User:
        if target_id == admin.id:
            raise ValidationError("You cannot change your own role")
        target = self.get(target_id)

        target.is_admin = bool(is_admin)
        self.db.commit()
        self.db.refresh(target)

        logger.info("Admin %s set isAdmin=%s on %s", admin.id, target.is_admin, target.id)
        self._record(
            "Role Updated",
            admin.id,
            f"{'Promoted' if target.is_admin else 'Demoted'} {target.email}",
        )
        return target

    def delete_account(self, target_id: str, admin: User) -> None:
        if target_id == admin.id:
            raise ValidationError("You cannot delete your own account")
        target = self.get(target_id)

        email, image = target.email, target.profile_image
        self.db.delete(target)
        self.db.commit()

        if image and self.storage is not None:
            schedule(
                self.background_tasks,
                "discard:profile-image",
                self.storage.discard,
                image,
            )

        logger.info("Admin %s deleted account %s", admin.id, target_id)
        self._record("User Deleted", admin.id, f"Deleted {email}")


def get_account_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    activity: ActivityRecorder = Depends(get_activity),
    storage: LocalArtifactStorage = Depends(get_storage),
) -> AccountService:
    """FastAPI dependency wiring the service to the request's collaborators."""
    return AccountService(
        db,
        mailer=mailer,
        activity=activity,
        storage=storage,
        background_tasks=background_tasks,
    )

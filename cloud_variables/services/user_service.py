"""
Tenant accounts: registration, login, profile and admin management.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cloud_variables.core.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
)
from cloud_variables.models.user import User, UserRole
from cloud_variables.services.tier_service import TierService
from cloud_variables.services.variable_ledger import VariableLedger
from cloud_variables.storage.base import BlobStore
from cloud_variables.utils.auth import CredentialIssuer
from cloud_variables.utils.pagination import escape_like
from cloud_variables.utils.validation import validate_password

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS = "Invalid email or password"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    def __init__(self, db: Session, issuer: CredentialIssuer, tiers: TierService):
        self.db = db
        self.issuer = issuer
        self.tiers = tiers

    def issue_token_for(self, user: User) -> str:
        return self.issuer.issue_token(user.id, user.email, user.role, user.tier_id)

    def register(self, email: str, password: str, role: str = UserRole.USER.value) -> Tuple[User, str]:
        """Create an account on the default tier and return it with a fresh session token."""
        validate_password(password)
        email = normalize_email(email)

        if self.db.query(User).filter(User.email == email).first():
            raise ConflictError("Email already registered")

        tier = self.tiers.get_default_tier()
        user = User(
            email=email,
            password_hash=self.issuer.hash_secret(password),
            role=role,
            tier_id=tier.id,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same email
            self.db.rollback()
            raise ConflictError("Email already registered") from e
        self.db.refresh(user)
        logger.info("Registered user id=%s on tier %s", user.id, tier.name)
        return user, self.issue_token_for(user)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        user = self.db.query(User).filter(User.email == normalize_email(email)).first()
        if not user or not self.issuer.verify_secret(password, user.password_hash):
            raise AuthenticationError(_INVALID_CREDENTIALS)
        if not user.is_active:
            raise AuthenticationError("Account is disabled")
        return user, self.issue_token_for(user)

    def get(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_active(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user or not user.is_active:
            raise AuthenticationError("Account not found or disabled")
        return user

    def list(self, page: int, page_size: int, search: Optional[str] = None) -> Tuple[List[User], int]:
        query = self.db.query(User)
        if search:
            query = query.filter(User.email.ilike(f"%{escape_like(search.lower())}%", escape="\\"))
        total = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return users, total

    def update_status(
        self,
        user_id: int,
        is_active: Optional[bool] = None,
        email_verified: Optional[bool] = None,
    ) -> User:
        user = self.get(user_id)
        if is_active is not None:
            user.is_active = is_active
        if email_verified is not None:
            user.email_verified = email_verified
        self.db.commit()
        self.db.refresh(user)
        return user

    def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        user = self.get(user_id)
        if not self.issuer.verify_secret(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")
        validate_password(new_password)
        user.password_hash = self.issuer.hash_secret(new_password)
        self.db.commit()
        logger.info("Password changed for user id=%s", user_id)

    def delete(self, user_id: int, blob_store: BlobStore) -> None:
        """
        Delete the account. Ledger rows, API keys, usage and promotion rows go with the user row;
        blobs are removed afterwards and a blob that cannot be removed is left for the
        reconciliation sweep.
        """
        user = self.get(user_id)
        storage_paths = VariableLedger(self.db).storage_paths_for_user(user.id)

        self.db.delete(user)
        self.db.commit()
        logger.info("Deleted user id=%s with %d variables", user_id, len(storage_paths))

        for storage_path in storage_paths:
            try:
                blob_store.delete(storage_path)
            except Exception as e:
                logger.warning("Orphaned blob left after deleting user id=%s: %s", user_id, e)

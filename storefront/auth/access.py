from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from pydantic import BaseModel, ValidationError as PydanticValidationError

from storefront.config import get_config
from storefront.data.models import Role, User
from storefront.errors import AuthError, ForbiddenError
from storefront.logging import get_logger

BEARER_PREFIX = "Bearer "


class Identity(BaseModel):
    """The authenticated caller, as carried in the token claims."""
    id: str
    email: str
    role: Role


class AccessControl:
    """Issues and verifies signed, time-limited bearer tokens using AppConfig singleton."""
    def __init__(self) -> None:
        """Initializes the access control layer using the singleton AppConfig."""
        self.config = get_config()
        self.logger = get_logger(__name__)

    def issue_token(self, user: User, expires_in: Optional[timedelta] = None) -> str:
        """Signs a token for the given user.

        Args:
            user (User): The account the token identifies.
            expires_in (timedelta, optional): Token lifetime. Defaults to
                `jwt_expire_minutes` from config.
        Returns:
            str: The encoded JWT.
        """
        if expires_in is None:
            expires_in = timedelta(minutes=self.config.jwt_expire_minutes)
        now = datetime.now(timezone.utc)
        payload = {
            "id": user.id,
            "email": user.email,
            "role": user.role,
            "iat": now,
            "exp": now + expires_in,
        }
        return jwt.encode(payload, self.config.jwt_secret, algorithm=self.config.jwt_algorithm)

    def authenticate(self, credential: Optional[str]) -> Identity:
        """Resolves an Authorization header value into an Identity.

        The `Bearer ` prefix is optional.

        Raises:
            AuthError: If the credential is missing, invalid or expired.
        """
        if not credential or not credential.strip():
            raise AuthError("Missing token, authorization denied")

        token = credential.strip()
        if token.startswith(BEARER_PREFIX):
            token = token[len(BEARER_PREFIX):].strip()

        try:
            claims = jwt.decode(
                token,
                self.config.jwt_secret,
                algorithms=[self.config.jwt_algorithm],
                options={"require": ["exp", "id", "role"]},
            )
        except jwt.ExpiredSignatureError:
            self.logger.info("Rejected expired token")
            raise AuthError("Token expired") from None
        except jwt.InvalidTokenError as e:
            self.logger.info(f"Rejected invalid token: {e}")
            raise AuthError("Invalid token") from None

        try:
            return Identity.model_validate(claims)
        except PydanticValidationError:
            self.logger.info("Rejected token with malformed claims")
            raise AuthError("Invalid token") from None


def authorize(identity: Identity, resource_owner_id: Optional[str], required_role: Optional[Role] = None) -> None:
    """Admin-or-owner rule used for reading, updating and deleting orders.

    With `required_role="admin"` only admins pass, ownership notwithstanding.

    Raises:
        ForbiddenError: If the caller is not allowed.
    """
    if required_role is not None:
        if identity.role != required_role:
            raise ForbiddenError(f"Insufficient permissions ({required_role} only)")
        return
    if identity.role == "admin":
        return
    if resource_owner_id is None or identity.id != resource_owner_id:
        raise ForbiddenError("Access to this resource is denied")


def authorize_order_creation(identity: Identity, user_id: str) -> None:
    """Owner-only rule for placing orders.

    Unlike `authorize`, admins get no bypass here: nobody can place an
    order on behalf of another account.
    TODO: confirm with product owners whether admins should be able to order for other users.

    Raises:
        ForbiddenError: If `user_id` is not the caller's own id.
    """
    if identity.id != user_id:
        raise ForbiddenError("You can only place orders for yourself")


def get_access_control() -> AccessControl:
    """Returns a new AccessControl instance using the latest config."""
    return AccessControl()

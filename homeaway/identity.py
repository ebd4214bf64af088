from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from .errors import AuthenticationError, AuthorizationError
from .storage import InMemoryStorage

USER_ID_HEADER = "x-user-id"
USER_EMAIL_HEADER = "x-user-email"


@dataclass(frozen=True)
class Identity:
    """Signed-in user as vouched for by the identity provider in front of the API."""

    id: str
    email_address: str
    metadata_flags: dict[str, bool] = field(default_factory=dict)

    @property
    def has_profile(self) -> bool:
        return self.metadata_flags.get("has_profile", False)


def current_identity(headers: Mapping[str, str], storage: InMemoryStorage) -> Optional[Identity]:
    user_id = (headers.get(USER_ID_HEADER) or "").strip()
    if not user_id:
        return None
    return Identity(
        id=user_id,
        email_address=(headers.get(USER_EMAIL_HEADER) or "").strip(),
        metadata_flags=storage.get_identity_flags(user_id),
    )


def require_identity(identity: Optional[Identity]) -> Identity:
    if identity is None:
        raise AuthenticationError()
    return identity


def require_admin(identity: Optional[Identity], admin_user_id: str) -> Identity:
    identity = require_identity(identity)
    if not admin_user_id or identity.id != admin_user_id:
        raise AuthorizationError()
    return identity

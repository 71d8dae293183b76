from __future__ import annotations

from dataclasses import dataclass, field

from .enums import Role
from .exceptions import AuthorizationError


@dataclass(frozen=True)
class SessionUser:
    """The acting user, passed explicitly into every service call.

    Controllers build it from the Flask session; services never read ambient state.
    """

    user_id: str
    full_name: str
    roles: frozenset[Role] = field(default_factory=frozenset)

    def has_role(self, *roles: Role) -> bool:
        return any(r in self.roles for r in roles)

    def require(self, *roles: Role) -> None:
        if not self.has_role(*roles):
            raise AuthorizationError("You do not have permission for this action")

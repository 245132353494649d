"""The requesting party behind a cart or order operation."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class ActorRole(Enum):
    CUSTOMER = "Customer"
    ADMIN = "Admin"
    SYSTEM = "System"


class Actor(BaseModel):
    """Current user as handed over by the authentication layer."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: ActorRole = ActorRole.CUSTOMER
    authenticated: bool = True

    @classmethod
    def system(cls, name: str = "system") -> "Actor":
        return cls(id=name, role=ActorRole.SYSTEM)

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN

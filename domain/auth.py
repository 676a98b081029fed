"""Domain Entities - Auth"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from typing import Dict, Optional

from domain.enums import SiteRole


class User(BaseModel):
    """User Entity"""
    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    disabled: bool = False
    site_roles: Dict[UUID, SiteRole] = {}

    class Config:
        from_attributes = True

    def has_site_role(self, site_id: UUID, required: SiteRole) -> bool:
        """Roles are ordered VIEWER < EDITOR < ADMIN < OWNER"""
        role = self.site_roles.get(site_id)
        return role is not None and role.value >= required.value


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str

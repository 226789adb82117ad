"""
User repository: identity lookup and staff listing.
"""

from typing import Any, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.engine import RowMapping

from hostel_engine.models.base import UserRole
from hostel_engine.repositories.base_repository import BaseRepository


class UserRepository(BaseRepository):
    table_name = "users"

    def find_by_email(self, email: str) -> Optional[RowMapping]:
        """Case-insensitive lookup by email."""
        t = self.table
        stmt = select(t).where(func.lower(t.c.email) == email.strip().lower())
        return self.session.execute(stmt).mappings().first()

    def create(
        self,
        email: str,
        name: str,
        password_hash: str,
        hostel_id: Optional[Any],
        role: str = UserRole.USER.value,
        password_is_temp: bool = True,
    ) -> Any:
        return self.insert({
            "email": email,
            "name": name,
            "password": password_hash,
            "role": role,
            "hostel_id": hostel_id,
            "password_is_temp": password_is_temp,
        })

    def list_staff(
        self,
        hostel_id: Any,
        roles: Sequence[str] = (UserRole.HOSTEL_ADMIN.value, UserRole.CUSTODIAN.value),
    ) -> List[RowMapping]:
        t = self.table
        stmt = (
            select(t.c.id, t.c.email, t.c.name, t.c.role)
            .where(t.c.hostel_id == hostel_id, t.c.role.in_(list(roles)))
            .order_by(t.c.email)
        )
        return list(self.session.execute(stmt).mappings())

"""
Student profile repository.

Writes to ``student_profiles`` or, on the oldest deployments, to the
legacy ``students`` table. Values only ever fill or replace a column
when a non-blank value is supplied.
"""

from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select

from hostel_engine.repositories.base_repository import BaseRepository

# Profile attribute -> candidate column names, first present wins
FIELD_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "access_number": ("access_number",),
    "registration_number": ("registration_number",),
    "course": ("course",),
    "phone": ("phone", "phone_number"),
    "whatsapp": ("whatsapp",),
    "emergency_contact": ("emergency_contact",),
    "guardian_name": ("guardian_name",),
    "guardian_phone": ("guardian_phone",),
    "gender": ("gender",),
    "date_of_birth": ("date_of_birth",),
}

LEGACY_TABLE = "students"


class ProfileRepository(BaseRepository):

    @property
    def table_name(self) -> str:  # type: ignore[override]
        return self.caps.profile_table or "student_profiles"

    @property
    def available(self) -> bool:
        return self.caps.profile_table is not None

    def _column_values(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for name, value in fields.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            for column in FIELD_COLUMNS.get(name, ()):
                if self.has_column(column):
                    values[column] = value
                    break
        return values

    def find_by_user(self, user_id: Any):
        t = self.table
        return self.session.execute(select(t).where(t.c.user_id == user_id)).mappings().first()

    def get_gender(self, user_id: Any) -> Optional[str]:
        if not self.available or not self.has_column("gender"):
            return None
        t = self.table
        return self.session.execute(
            select(t.c.gender).where(t.c.user_id == user_id)
        ).scalar_one_or_none()

    def upsert(self, user_id: Any, fields: Dict[str, Any]) -> Optional[Any]:
        """
        Create the profile or fill in the supplied attributes.

        Returns the profile id, or None when the schema has no profile table.
        """
        if not self.available:
            return None

        values = self._column_values(fields)
        existing = self.find_by_user(user_id)
        if existing is not None:
            if values:
                self.update_by_id(existing["id"], values)
            return existing["id"]

        if self.table_name == LEGACY_TABLE and self.has_column("registration_number"):
            values.setdefault("registration_number", f"REG-{user_id}")
        values["user_id"] = user_id
        return self.insert(values)

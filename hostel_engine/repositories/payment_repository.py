"""
Payment ledger repository (append-only).
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from hostel_engine.core.exceptions import SchemaMismatchError
from hostel_engine.repositories.base_repository import BaseRepository


class PaymentRepository(BaseRepository):
    table_name = "payments"

    def record(
        self,
        user_id: Any,
        amount: Decimal,
        currency: str,
        payment_method: str,
        recorded_by: Optional[Any],
        now: datetime,
        hostel_id: Optional[Any] = None,
        semester_id: Optional[Any] = None,
        notes: Optional[str] = None,
    ) -> Any:
        """Append one payment, writing optional columns only where they exist."""
        user_column = self.caps.payment_user_column
        if user_column is None:
            raise SchemaMismatchError(self.table_name, "student_id")

        values: Dict[str, Any] = {
            user_column: user_id,
            "amount": amount,
            "currency": currency,
            "payment_method": payment_method,
            "recorded_by": recorded_by,
            "payment_date": now,
            "notes": notes,
        }
        if self.caps.payment_has_hostel and hostel_id is not None:
            values["hostel_id"] = hostel_id
        if self.caps.payment_has_semester:
            values["semester_id"] = semester_id
        return self.insert(values)

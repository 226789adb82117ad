"""
Booking expiry sweeper.

Runs every few minutes: pending public bookings nobody paid for within
the expiry window become ``expired`` (releasing the place they held), and
room reservations past ``expires_at`` become ``expired``. Each part runs
in its own transaction; a failure in one is logged and does not stop the
other. Running the sweep twice, or two sweeps at once, is harmless.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from hostel_engine.core.exceptions import BaseAppException
from hostel_engine.models.base import PublicBookingStatus
from hostel_engine.repositories import BookingRepository, ReservationRepository
from hostel_engine.services.base.base_service import BaseService
from hostel_engine.utils.date_utils import minutes_ago


@dataclass
class SweepReport:
    """Result of one sweep."""
    expired_bookings: int = 0
    expired_booking_ids: List[str] = field(default_factory=list)
    expired_reservations: int = 0
    expired_reservation_ids: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expired_bookings": self.expired_bookings,
            "expired_booking_ids": self.expired_booking_ids,
            "expired_reservations": self.expired_reservations,
            "expired_reservation_ids": self.expired_reservation_ids,
            "skipped": self.skipped,
            "errors": self.errors,
            "duration_ms": round(self.duration_ms, 2),
        }


class BookingExpiryService(BaseService):

    def sweep(self, now: Optional[datetime] = None) -> SweepReport:
        """Expire stale bookings and reservations."""
        now = now or self.clock()
        started = time.perf_counter()
        report = SweepReport()
        caps = self.capabilities()

        if caps.has_public_bookings:
            self._run(report, "public_bookings", lambda: self._expire_bookings(report, now))
        else:
            report.skipped.append("public_hostel_bookings")

        if caps.has_reservations:
            self._run(report, "reservations", lambda: self._expire_reservations(report, now))
        else:
            report.skipped.append("room_reservations")

        report.duration_ms = (time.perf_counter() - started) * 1000
        self._logger.info(
            f"Booking sweep finished: {report.expired_bookings} bookings, "
            f"{report.expired_reservations} reservations expired",
            extra=report.to_dict(),
        )
        return report

    def expire_pending_bookings(self, now: Optional[datetime] = None) -> int:
        report = SweepReport()
        self._expire_bookings(report, now or self.clock())
        return report.expired_bookings

    def get_booking_stats(self, hostel_id: Any) -> Dict[str, int]:
        """Booking counts per status for one hostel."""
        caps = self.capabilities()
        counts: Dict[str, int] = {}
        if caps.has_public_bookings:
            with self.unit_of_work("get_booking_stats") as session:
                counts = BookingRepository(session, caps).count_by_status(hostel_id)

        stats = {status.value: counts.get(status.value, 0) for status in PublicBookingStatus}
        stats["total"] = sum(counts.values())
        return stats

    # -------------------------------------------------------------------------

    def _run(self, report: SweepReport, part: str, func) -> None:
        try:
            func()
        except BaseAppException as e:
            self._logger.error(f"Booking sweep part '{part}' failed: {e}", exc_info=True)
            report.errors.append(f"{part}: {e}")

    def _expire_bookings(self, report: SweepReport, now: datetime) -> None:
        cutoff = minutes_ago(self.settings.BOOKING_EXPIRY_MINUTES, now)
        caps = self.capabilities()
        with self.unit_of_work("expire_pending_bookings") as session:
            bookings = BookingRepository(session, caps)
            ids = bookings.find_stale_pending_ids(cutoff)
            expired = bookings.expire(ids)
        report.expired_bookings = expired
        report.expired_booking_ids = [str(booking_id) for booking_id in ids]

    def _expire_reservations(self, report: SweepReport, now: datetime) -> None:
        caps = self.capabilities()
        with self.unit_of_work("expire_reservations") as session:
            reservations = ReservationRepository(session, caps)
            ids = reservations.find_expired_ids(now)
            expired = reservations.expire(ids)
        report.expired_reservations = expired
        report.expired_reservation_ids = [str(reservation_id) for reservation_id in ids]

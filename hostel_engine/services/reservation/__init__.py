from hostel_engine.services.reservation.reservation_service import ReservationService

__all__ = ["ReservationService"]

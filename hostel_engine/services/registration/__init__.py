from hostel_engine.services.registration.student_registration_service import (
    StudentRegistrationService,
)

__all__ = ["StudentRegistrationService"]

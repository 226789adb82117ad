"""
Utility helpers.
"""

from hostel_engine.utils.date_utils import now_utc, today_utc
from hostel_engine.utils.hashing import PasswordHasher

__all__ = ["now_utc", "today_utc", "PasswordHasher"]

"""
Hostel occupancy engine.

Registers students into rooms for a semester in one atomic transaction,
keeps room occupancy consistent with assignments, enrollments and
payments, and runs the periodic booking-expiry and semester-transition
jobs.
"""

__version__ = "1.0.0"

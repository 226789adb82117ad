"""
Room occupancy and assignment lifecycle services.
"""

from hostel_engine.services.room.assignment_service import AssignmentService
from hostel_engine.services.room.occupancy_service import RoomOccupancyService

__all__ = ["RoomOccupancyService", "AssignmentService"]

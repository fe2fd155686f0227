"""
Application services.
"""

from funding_stages.services.announcements import MilestoneAnnouncer
from funding_stages.services.tracker_service import FundingTrackerService

__all__ = ["FundingTrackerService", "MilestoneAnnouncer"]

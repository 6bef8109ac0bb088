"""
Core components for the Moderation Worker.
"""

from .moderator import DecisionStatus, ModerationWorker

__all__ = ["DecisionStatus", "ModerationWorker"]

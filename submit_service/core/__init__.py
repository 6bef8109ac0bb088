"""
Core components for the Submission Gateway.
"""

from .gateway import SubmissionGateway

__all__ = ["SubmissionGateway"]

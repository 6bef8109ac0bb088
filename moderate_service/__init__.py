"""
Moderation Worker: hands pending submissions to a reviewer and forwards approvals.
"""

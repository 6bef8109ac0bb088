"""
Submission Gateway: accepts joke proposals and queues them for moderation.
"""

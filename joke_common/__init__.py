"""
Shared building blocks for the joke moderation pipeline services.
"""

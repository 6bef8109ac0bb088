"""
Error taxonomy shared by every service in the pipeline.
"""
from typing import Iterable


class JokePipelineError(Exception):
    """Base class for all pipeline errors."""


class ValidationError(JokePipelineError):
    """Raised when a request is missing one or more required fields.

    Raised before any side effect, so nothing has been published when it surfaces.
    """

    def __init__(self, missing_fields: Iterable[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(f"Missing required fields: {', '.join(self.missing_fields)}")


class BrokerUnavailable(JokePipelineError):
    """Raised when there is no live broker channel to publish or fetch with."""


class ProcessingError(JokePipelineError):
    """Raised for malformed payloads or store failures while consuming a queue."""


class StoreError(JokePipelineError):
    """Raised when a persistence backend query fails."""

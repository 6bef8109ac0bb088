from fastapi import HTTPException, Request

from submit_service.core.gateway import SubmissionGateway


def get_gateway(request: Request) -> SubmissionGateway:
    """Gateway instance created by the application lifespan."""
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise HTTPException(status_code=503, detail="Submission gateway is not initialized")
    return gateway

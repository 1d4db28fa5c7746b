"""FastAPI dependencies."""

from fastapi import Request

from ..services.insights import InsightService


def get_insight_service(request: Request) -> InsightService:
    """The insight service built at startup."""
    return request.app.state.insight_service

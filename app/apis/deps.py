from __future__ import annotations

from fastapi import Request

from app.modules.flows.main import LearningFlows


def get_flows(request: Request) -> LearningFlows:
    """Return the process-wide ``LearningFlows`` built during app startup."""
    return request.app.state.flows

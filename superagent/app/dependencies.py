"""
Dependency Injection for the SuperAgent app.

The ModelService is created by whoever builds the app and stored on
`app.state`; routes receive it through FastAPI's Depends.
"""

from __future__ import annotations

from fastapi import Request

from superagent.service import ModelService


def get_model_service(request: Request) -> ModelService:
    """Return the ModelService the application was created with."""
    return request.app.state.model_service

"""HTTP routes for the model service."""

from .models import router as models_router

__all__ = ["models_router"]

"""
SuperAgent HTTP application.

Usage:
    from superagent.app import create_app
    from superagent.service import ModelService

    app = create_app(ModelService())
"""

from .main import create_app

__all__ = ["create_app"]

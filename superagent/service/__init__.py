"""
SuperAgent Model Service

Model id -> provider registry with chat routing and lifecycle management.
"""

from .registry import ModelService

__all__ = ["ModelService"]

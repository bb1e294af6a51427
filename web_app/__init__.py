"""Web listeners for the link service."""

from .app_factory import create_management_app, create_redirect_app

__all__ = ["create_management_app", "create_redirect_app"]

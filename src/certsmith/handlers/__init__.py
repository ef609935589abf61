"""Handler modules for the certsmith operator."""

# Importing registers the kopf handlers
from . import certificate_handler

__all__ = ["certificate_handler"]

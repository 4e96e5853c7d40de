"""
FastAPI dependencies.
"""
from fastapi import Request

from conduit import Extension


def get_extension(request: Request) -> Extension:
    """Return the extension hosted by this application."""
    return request.app.state.extension

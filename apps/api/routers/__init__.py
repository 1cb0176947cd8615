"""Routers package."""

from . import (
    health,
    images,
    videos,
)

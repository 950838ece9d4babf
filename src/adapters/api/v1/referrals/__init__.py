from __future__ import annotations

"""Referral router package: the authenticated referral read endpoints."""

from .routes import router

__all__ = ["router"]

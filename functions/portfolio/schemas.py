"""
Pydantic schemas for the portfolio HTTP API.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class SaveResponse(BaseModel):
    ok: Literal[True] = True


class UploadResponse(BaseModel):
    url: str
    key: str


class ErrorResponse(BaseModel):
    error: str

"""
Dependency wiring for the FastAPI app and the admin tools.
"""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException

from portfolio.config import Settings, get_settings
from portfolio.local_db import (
    InMemoryLocalStore,
    LegacyJsonStore,
    LocalStore,
    SqlLocalStore,
)
from portfolio.remote import RemoteStoreClient
from portfolio.repository import PortfolioRepository
from portfolio.storage import InMemoryStorageClient, S3StorageClient, StorageClient

_storage_client: StorageClient | None = None
_local_store: LocalStore | None = None


def get_storage_client() -> StorageClient:
    """
    Return a singleton storage client so in-memory objects persist across requests.
    """
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.s3_bucket:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.s3_bucket,
            region=settings.s3_region or "",
            endpoint=settings.s3_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
        )
    return _storage_client


def require_admin_token(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject writes unless the bearer token matches ADMIN_TOKEN exactly."""
    if not settings.admin_token or not authorization:
        raise HTTPException(status_code=401, detail="Unauthorized")
    expected = f"Bearer {settings.admin_token}"
    if not secrets.compare_digest(authorization.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_local_store() -> LocalStore:
    """
    Return a singleton local database so cached collections persist across calls.
    """
    global _local_store
    if _local_store:
        return _local_store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _local_store = InMemoryLocalStore()
    else:
        _local_store = SqlLocalStore(settings.local_database_url)
    return _local_store


def create_repository(settings: Settings | None = None) -> PortfolioRepository:
    """Build a repository wired to the configured remote, local and legacy stores."""
    settings = settings or get_settings()
    remote = None
    if settings.remote_base_url:
        remote = RemoteStoreClient(
            base_url=settings.remote_base_url,
            token=settings.admin_token,
            timeout=settings.request_timeout,
        )
    legacy_store = (
        LegacyJsonStore(settings.legacy_store_path)
        if settings.legacy_store_path
        else None
    )
    return PortfolioRepository(
        local_store=get_local_store(),
        remote=remote,
        legacy_store=legacy_store,
    )

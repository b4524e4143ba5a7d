"""
Record-shape migration applied to project/category data on every read.

Older data stored a single ``imageUrl`` per project, used the folder labels
from the original image drive as categories, and predates the landing-page
flag. Everything here is idempotent: migrating migrated data is a no-op.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from shared.types import DEFAULT_CROP_SCALE, DEFAULT_CROP_X, DEFAULT_CROP_Y

logger = logging.getLogger(__name__)

LEGACY_CATEGORY_MAP = {
    "Missing Middle": "Missing Middle Residential",
    "Misisng Middle": "Missing Middle Residential",
    "Custom Residential + Missing Middle": "Missing Middle Residential",
    "Residdential Interiors": "Residential Interiors",
    "Commercial Office": "Commercial Interiors",
    "Feasibility": "Conceptual Planning + Feasibility",
    "Concept": "Conceptual Planning + Feasibility",
}


def remap_category(label: str) -> str:
    cleaned = (label or "").strip()
    return LEGACY_CATEGORY_MAP.get(cleaned, cleaned)


def _migrate_image(image: Any) -> dict | None:
    if isinstance(image, str):
        image = {"url": image}
    if not isinstance(image, dict) or not image.get("url"):
        return None
    migrated = dict(image)
    migrated.setdefault("cropX", DEFAULT_CROP_X)
    migrated.setdefault("cropY", DEFAULT_CROP_Y)
    migrated.setdefault("cropScale", DEFAULT_CROP_SCALE)
    return migrated


def migrate_project(record: dict, position: int = 1) -> dict:
    """Return a migrated copy of one project record (camelCase wire form)."""
    migrated = dict(record)

    images = [
        image
        for image in (_migrate_image(raw) for raw in migrated.get("images") or [])
        if image is not None
    ]
    if not images and migrated.get("imageUrl"):
        images = [_migrate_image(migrated["imageUrl"])]
    migrated["images"] = images
    migrated["imageUrl"] = images[0]["url"] if images else ""

    migrated["category"] = remap_category(migrated.get("category", ""))
    migrated["title"] = migrated.get("title") or ""
    for key in ("description", "medium", "year"):
        if migrated.get(key) is None:
            migrated[key] = ""
    if migrated.get("orderIndex") is None:
        migrated["orderIndex"] = position
    migrated.setdefault("published", True)
    migrated.setdefault("showOnLanding", False)
    return migrated


def migrate_category(record: dict, position: int = 1) -> dict:
    migrated = dict(record)
    migrated["name"] = remap_category(migrated.get("name", ""))
    if migrated.get("description") is None:
        migrated["description"] = ""
    if migrated.get("orderIndex") is None:
        migrated["orderIndex"] = position
    return migrated


def _valid_records(records: Iterable[Any], kind: str) -> list[dict]:
    valid = []
    for record in records or []:
        if not isinstance(record, dict) or not record.get("id"):
            logger.warning("Dropping malformed %s record: %r", kind, record)
            continue
        valid.append(record)
    return valid


def migrate_projects(records: Iterable[Any]) -> list[dict]:
    return [
        migrate_project(record, position)
        for position, record in enumerate(_valid_records(records, "project"), start=1)
    ]


def migrate_categories(records: Iterable[Any]) -> list[dict]:
    return [
        migrate_category(record, position)
        for position, record in enumerate(
            _valid_records(records, "category"), start=1
        )
    ]

"""
Exports of the working set: pretty JSON and the zipped deploy package.

Images added in the admin without an upload are kept inline as ``data:``
URLs. The deploy package writes them out as files and points the exported
records at ``/images/{project-id}/{file}``.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import logging
import mimetypes
import re
import zipfile
from pathlib import Path
from typing import Optional
from urllib.parse import unquote_to_bytes

logger = logging.getLogger(__name__)

_DATA_URL = re.compile(r"^data:(?P<type>[^;,]*)(?P<params>(;[^;,]*)*),(?P<data>.*)$", re.S)
_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def parse_data_url(url: str) -> Optional[tuple[str, bytes]]:
    """Return (content_type, bytes) for a data URL, or None if it is not one."""
    match = _DATA_URL.match(url or "")
    if not match:
        return None
    content_type = match.group("type") or "text/plain"
    raw = match.group("data")
    if ";base64" in match.group("params"):
        try:
            return content_type, base64.b64decode(raw, validate=False)
        except (binascii.Error, ValueError):
            logger.warning("Skipping undecodable data URL (%d chars)", len(url))
            return None
    return content_type, unquote_to_bytes(raw)


def make_data_url(data: bytes, content_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def image_filename(content_type: str, data: bytes) -> str:
    """Content-addressed name, so re-uploads never reuse an immutable URL."""
    digest = hashlib.sha1(data).hexdigest()[:12]
    extension = (
        _EXTENSIONS.get(content_type)
        or mimetypes.guess_extension(content_type)
        or ".jpg"
    )
    return f"image-{digest}{extension}"


def pretty_json(records: list[dict]) -> str:
    return json.dumps(records, indent=2, ensure_ascii=False) + "\n"


def build_deploy_package(
    projects: list[dict], categories: list[dict], path: str | Path
) -> Path:
    """
    Write projects.json, categories.json and images/ into a zip at ``path``.

    ``projects`` and ``categories`` are wire-form dicts; they are not mutated.
    """
    path = Path(path)
    exported = []
    written: set[str] = set()
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for project in projects:
            project = dict(project)
            images = []
            for image in project.get("images") or []:
                image = dict(image)
                parsed = parse_data_url(image.get("url", ""))
                if parsed:
                    content_type, data = parsed
                    name = image_filename(content_type, data)
                    member = f"images/{project['id']}/{name}"
                    if member not in written:
                        archive.writestr(member, data)
                        written.add(member)
                    image["url"] = f"/images/{project['id']}/{name}"
                images.append(image)
            project["images"] = images
            project["imageUrl"] = images[0]["url"] if images else ""
            exported.append(project)

        archive.writestr("projects.json", pretty_json(exported))
        archive.writestr("categories.json", pretty_json(categories))

    logger.info("Wrote deploy package %s (%d projects)", path, len(exported))
    return path

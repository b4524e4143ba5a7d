"""
Import project images from a folder tree and generate projects.json and
categories.json.

Each sub-folder is one project, named "Project Title - Category". The last
" - " segment is the category (legacy labels are remapped); the rest is the
title. Images are copied to <images-dir>/<slug>/ and referenced as
/images/<slug>/<file>.
"""

from __future__ import annotations

import argparse
import json
import logging
import re
import shutil
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio.migration import remap_category
from portfolio.repository import SEED_DIR
from shared.types import DEFAULT_CROP_SCALE, DEFAULT_CROP_X, DEFAULT_CROP_Y

logger = logging.getLogger(__name__)

IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".webp"}
SLUG_MAX_LENGTH = 60

DEFAULT_CATEGORIES = [
    "Missing Middle Residential",
    "Custom Residential",
    "Residential Interiors",
    "Hospitality",
    "Commercial Interiors",
    "Conceptual Planning + Feasibility",
]


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug[:SLUG_MAX_LENGTH]


def parse_folder_name(folder_name: str) -> tuple[str, str | None]:
    """Split "Title - Category"; titles may themselves contain " - "."""
    parts = folder_name.split(" - ")
    if len(parts) < 2:
        return folder_name.strip(), None
    return " - ".join(parts[:-1]).strip(), parts[-1].strip()


def list_images(folder: Path) -> list[Path]:
    return sorted(
        path
        for path in folder.iterdir()
        if path.is_file() and path.suffix.lower() in IMAGE_EXTS
    )


def default_categories() -> list[dict]:
    return [
        {"id": f"seed-{index}", "name": name, "description": "", "orderIndex": index}
        for index, name in enumerate(DEFAULT_CATEGORIES, start=1)
    ]


def import_folders(source_dir: Path, images_dir: Path) -> list[dict]:
    known = set(DEFAULT_CATEGORIES)
    folders = sorted(
        (path for path in source_dir.iterdir() if path.is_dir()),
        key=lambda path: path.name,
    )
    logger.info("Found %d project folders", len(folders))

    projects = []
    for folder in folders:
        title, raw_category = parse_folder_name(folder.name)
        category = remap_category(raw_category) if raw_category else None
        if category not in known:
            logger.warning(
                'Unknown category "%s" for "%s"; skipping', raw_category, title
            )
            continue

        files = list_images(folder)
        if not files:
            logger.warning('No images in "%s"; skipping', folder.name)
            continue

        slug = slugify(title)
        dest_dir = images_dir / slug
        dest_dir.mkdir(parents=True, exist_ok=True)
        images = []
        for path in files:
            shutil.copyfile(path, dest_dir / path.name)
            images.append(
                {
                    "url": f"/images/{slug}/{path.name}",
                    "cropX": DEFAULT_CROP_X,
                    "cropY": DEFAULT_CROP_Y,
                    "cropScale": DEFAULT_CROP_SCALE,
                }
            )

        projects.append(
            {
                "id": slug,
                "title": title,
                "description": "",
                "imageUrl": images[0]["url"],
                "images": images,
                "category": category,
                "medium": "",
                "year": "",
                "orderIndex": len(projects) + 1,
                "published": True,
                "showOnLanding": False,
            }
        )
        logger.info("%s (%s): %d images -> %s", title, category, len(files), dest_dir)
    return projects


def write_json(path: Path, records: list[dict]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(records, indent=2) + "\n", encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Import project folders")
    parser.add_argument("source", type=Path, help="Folder of project sub-folders")
    parser.add_argument(
        "--images-dir",
        type=Path,
        default=Path("public/images"),
        help="Where to copy images",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=SEED_DIR,
        help="Where to write projects.json and categories.json",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    if not args.source.is_dir():
        logger.error("Source folder %s does not exist", args.source)
        return 1

    args.images_dir.mkdir(parents=True, exist_ok=True)
    projects = import_folders(args.source, args.images_dir)
    write_json(args.data_dir / "projects.json", projects)
    write_json(args.data_dir / "categories.json", default_categories())

    total_images = sum(len(project["images"]) for project in projects)
    logger.info("Imported %d projects, %d images", len(projects), total_images)
    return 0


if __name__ == "__main__":
    sys.exit(main())

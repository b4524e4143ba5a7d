"""
Re-import and optimize project images.

Reads the source folder tree (same layout as import_from_folder), resizes
images so neither side exceeds MAX_DIMENSION, writes JPEGs into the images
folder, and rewrites the image list of each matching project in
projects.json.
"""

from __future__ import annotations

import argparse
import json
import logging
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio.repository import SEED_DIR
from scripts.import_from_folder import list_images, parse_folder_name, slugify
from shared.types import DEFAULT_CROP_SCALE, DEFAULT_CROP_X, DEFAULT_CROP_Y

logger = logging.getLogger(__name__)

MAX_DIMENSION = 1920
JPEG_QUALITY = 80


@dataclass
class OptimizeStats:
    files: int = 0
    errors: int = 0
    bytes_before: int = 0
    bytes_after: int = 0

    @property
    def saved_percent(self) -> float:
        if not self.bytes_before:
            return 0.0
        return (self.bytes_before - self.bytes_after) / self.bytes_before * 100


def output_name(filename: str) -> str:
    path = Path(filename)
    if path.suffix.lower() in (".jpg", ".jpeg"):
        return filename
    return f"{path.stem}.jpg"


def optimize_image(src: Path, dest: Path) -> int:
    """Write an optimized JPEG of ``src`` to ``dest`` and return its size."""
    with Image.open(src) as image:
        if image.mode != "RGB":
            image = image.convert("RGB")
        # thumbnail() keeps the aspect ratio and never enlarges.
        image.thumbnail((MAX_DIMENSION, MAX_DIMENSION))
        image.save(dest, "JPEG", quality=JPEG_QUALITY, optimize=True, progressive=True)
    return dest.stat().st_size


def optimize_folder(source_dir: Path, images_dir: Path, projects: list[dict]) -> OptimizeStats:
    """Optimize every project folder; ``projects`` is updated in place."""
    stats = OptimizeStats()
    by_id = {project.get("id"): project for project in projects}

    for folder in sorted(p for p in source_dir.iterdir() if p.is_dir()):
        title, _ = parse_folder_name(folder.name)
        slug = slugify(title)
        files = list_images(folder)
        if not files:
            continue

        dest_dir = images_dir / slug
        if dest_dir.exists():
            shutil.rmtree(dest_dir)
        dest_dir.mkdir(parents=True)
        logger.info("%s (%d files)", folder.name, len(files))

        images = []
        for src in files:
            name = output_name(src.name)
            before = src.stat().st_size
            try:
                after = optimize_image(src, dest_dir / name)
            except OSError as exc:
                logger.error("%s: %s", src.name, exc)
                stats.errors += 1
            else:
                stats.files += 1
                stats.bytes_before += before
                stats.bytes_after += after
                logger.debug("%s -> %s | %dKB -> %dKB", src.name, name, before // 1024, after // 1024)
            # Failed files keep their reference.
            images.append(
                {
                    "url": f"/images/{slug}/{name}",
                    "cropX": DEFAULT_CROP_X,
                    "cropY": DEFAULT_CROP_Y,
                    "cropScale": DEFAULT_CROP_SCALE,
                }
            )

        project = by_id.get(slug)
        if project is not None:
            project["images"] = images
            project["imageUrl"] = images[0]["url"]
    return stats


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Optimize project images")
    parser.add_argument("source", type=Path, help="Folder of project sub-folders")
    parser.add_argument(
        "--images-dir",
        type=Path,
        default=Path("public/images"),
        help="Where to write optimized images",
    )
    parser.add_argument(
        "--projects-json",
        type=Path,
        default=SEED_DIR / "projects.json",
        help="projects.json to update with the new image paths",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    logger.info("Max dimension: %dpx | JPEG quality: %d", MAX_DIMENSION, JPEG_QUALITY)

    projects = json.loads(args.projects_json.read_text(encoding="utf-8"))
    stats = optimize_folder(args.source, args.images_dir, projects)
    args.projects_json.write_text(json.dumps(projects, indent=2) + "\n", encoding="utf-8")

    logger.info(
        "Optimized %d files (%d errors): %.1fMB -> %.1fMB (%.0f%% saved)",
        stats.files,
        stats.errors,
        stats.bytes_before / 1024 / 1024,
        stats.bytes_after / 1024 / 1024,
        stats.saved_percent,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())

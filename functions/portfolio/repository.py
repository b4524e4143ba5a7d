"""
Data access for projects and categories.

Collections are read from the first source that yields data: the remote
store, then the local database, then the bundled seed files. The same record
migration runs whatever the source. Mutations replace the working set and
write the whole collection back to the local database; nothing reaches the
remote store until ``publish()`` is called. There is no locking or merging, so
two admins editing at once simply overwrite each other.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import fields, replace
from pathlib import Path
from typing import Callable, Optional

from portfolio.export import (
    build_deploy_package,
    image_filename,
    parse_data_url,
    pretty_json,
)
from portfolio.local_db import (
    CATEGORIES_KEY,
    LEGACY_CATEGORIES_KEY,
    LEGACY_PROJECTS_KEY,
    PROJECTS_KEY,
    LegacyJsonStore,
    LocalStore,
    LocalStoreError,
)
from portfolio.migration import migrate_categories, migrate_projects
from portfolio.remote import RemoteStoreClient, RemoteStoreError
from shared.json_utils import convert_keys
from shared.types import (
    Category,
    Project,
    ProjectImage,
    category_from_dict,
    project_from_dict,
    to_json_dict,
)

logger = logging.getLogger(__name__)

SEED_DIR = Path(__file__).resolve().parent / "seed"
SAVE_ERROR_MESSAGE = (
    "Changes could not be saved locally. They will be lost when this session ends."
)

SOURCE_REMOTE = "remote"
SOURCE_LOCAL = "local"
SOURCE_SEED = "seed"

# image_url always mirrors images[0].url and is never set directly.
_PROJECT_FIELDS = {f.name for f in fields(Project)} - {"id", "image_url"}
_CATEGORY_FIELDS = {f.name for f in fields(Category)} - {"id"}


def _as_image(image: ProjectImage | dict | str) -> ProjectImage:
    if isinstance(image, ProjectImage):
        return image
    if isinstance(image, str):
        return ProjectImage(url=image)
    image = convert_keys(image, "camel_to_snake")
    return ProjectImage(
        url=image["url"],
        **{
            key: value
            for key, value in image.items()
            if key in ("crop_x", "crop_y", "crop_scale")
        },
    )


def _with_images(project: Project, images: list) -> Project:
    images = [_as_image(image) for image in images]
    return replace(project, images=images, image_url=images[0].url if images else "")


def _check_fields(updates: dict, allowed: set[str]) -> None:
    unknown = set(updates) - allowed
    if unknown:
        raise ValueError(f"Unknown or read-only fields: {', '.join(sorted(unknown))}")


def _swap_order(records: list, record_id: str, direction: str) -> list:
    if direction not in ("up", "down"):
        raise ValueError(f"direction must be 'up' or 'down', got {direction!r}")
    ordered = sorted(records, key=lambda record: record.order_index)
    index = next(
        (i for i, record in enumerate(ordered) if record.id == record_id), None
    )
    if index is None:
        raise KeyError(record_id)
    swap_index = index - 1 if direction == "up" else index + 1
    if swap_index < 0 or swap_index >= len(ordered):
        return records

    first, second = ordered[index], ordered[swap_index]
    swapped = []
    for record in records:
        if record.id == first.id:
            record = replace(record, order_index=second.order_index)
        elif record.id == second.id:
            record = replace(record, order_index=first.order_index)
        swapped.append(record)
    return swapped


def _next_order_index(records: list) -> int:
    return max((record.order_index for record in records), default=0) + 1


class PortfolioRepository:
    """The working set of projects and categories for one session."""

    def __init__(
        self,
        local_store: LocalStore,
        remote: Optional[RemoteStoreClient] = None,
        legacy_store: Optional[LegacyJsonStore] = None,
        seed_dir: str | Path = SEED_DIR,
        clock: Callable[[], float] = time.time,
    ):
        self.local_store = local_store
        self.remote = remote
        self.legacy_store = legacy_store
        self.seed_dir = Path(seed_dir)
        self.clock = clock
        self.sources: dict[str, str] = {}
        self.save_error: Optional[str] = None
        self._projects: list[Project] = []
        self._categories: list[Category] = []

    # Loading

    def load(self) -> "PortfolioRepository":
        projects = self._load_collection(
            PROJECTS_KEY, LEGACY_PROJECTS_KEY, migrate_projects
        )
        categories = self._load_collection(
            CATEGORIES_KEY, LEGACY_CATEGORIES_KEY, migrate_categories
        )
        self._projects = [project_from_dict(record) for record in projects]
        self._categories = [category_from_dict(record) for record in categories]
        logger.info(
            "Loaded %d projects (%s) and %d categories (%s)",
            len(self._projects),
            self.sources[PROJECTS_KEY],
            len(self._categories),
            self.sources[CATEGORIES_KEY],
        )
        return self

    def _fetch_remote(self, key: str) -> Optional[list]:
        if self.remote is None:
            return None
        fetch = (
            self.remote.fetch_projects
            if key == PROJECTS_KEY
            else self.remote.fetch_categories
        )
        try:
            return fetch()
        except RemoteStoreError as exc:
            logger.warning("Remote %s unavailable, falling back: %s", key, exc)
            return None

    def _load_collection(
        self, key: str, legacy_key: str, migrate: Callable[[list], list]
    ) -> list[dict]:
        # Emptiness is judged after migration; a blob of only malformed
        # records must not replace the local database.
        migrated = migrate(self._fetch_remote(key) or [])
        if migrated:
            self.sources[key] = SOURCE_REMOTE
            try:
                self.local_store.put(key, migrated)
            except LocalStoreError as exc:
                logger.warning("Could not cache remote %s locally: %s", key, exc)
            return migrated

        self._migrate_legacy(key, legacy_key)
        try:
            records = self.local_store.get(key)
        except LocalStoreError as exc:
            logger.warning("Local %s unavailable, falling back: %s", key, exc)
            records = None
        migrated = migrate(records or [])
        if migrated:
            self.sources[key] = SOURCE_LOCAL
            return migrated

        self.sources[key] = SOURCE_SEED
        return migrate(self._read_seed(key))

    def _migrate_legacy(self, key: str, legacy_key: str) -> None:
        """Move a collection from legacy storage into the local database, once."""
        if self.legacy_store is None:
            return
        records = self.legacy_store.read(legacy_key)
        if records is None:
            return
        try:
            if self.local_store.get(key) is None:
                self.local_store.put(key, records)
                logger.info("Migrated %d legacy %s records", len(records), key)
        except LocalStoreError as exc:
            logger.warning("Legacy %s migration failed: %s", key, exc)
            return
        try:
            self.legacy_store.remove(legacy_key)
        except OSError as exc:
            logger.warning("Could not remove legacy %s: %s", legacy_key, exc)

    def _read_seed(self, key: str) -> list:
        path = self.seed_dir / f"{key}.json"
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Seed file %s unreadable: %s", path, exc)
            return []
        return data if isinstance(data, list) else []

    # Queries

    @property
    def projects(self) -> list[Project]:
        return list(self._projects)

    @property
    def categories(self) -> list[Category]:
        return sorted(self._categories, key=lambda category: category.order_index)

    @property
    def published_projects(self) -> list[Project]:
        return sorted(
            (project for project in self._projects if project.published),
            key=lambda project: project.order_index,
        )

    @property
    def featured_projects(self) -> list[Project]:
        return [
            project for project in self.published_projects if project.show_on_landing
        ]

    def projects_in_category(self, name: Optional[str] = None) -> list[Project]:
        """Published projects for the gallery filter; ``None`` means all."""
        if name is None:
            return self.published_projects
        return [
            project for project in self.published_projects if project.category == name
        ]

    def category_descriptions(self) -> dict[str, str]:
        return {
            category.name: category.description
            for category in self.categories
            if category.description
        }

    def category_counts(self) -> dict[str, int]:
        counts = {category.name: 0 for category in self.categories}
        for project in self._projects:
            counts[project.category] = counts.get(project.category, 0) + 1
        return counts

    def get_project(self, project_id: str) -> Project:
        for project in self._projects:
            if project.id == project_id:
                return project
        raise KeyError(project_id)

    def get_category(self, category_id: str) -> Category:
        for category in self._categories:
            if category.id == category_id:
                return category
        raise KeyError(category_id)

    # Persistence

    def _persist(self, key: str, records: list) -> None:
        try:
            self.local_store.put(key, [to_json_dict(record) for record in records])
        except LocalStoreError as exc:
            logger.warning("Local save of %s failed: %s", key, exc)
            self.save_error = SAVE_ERROR_MESSAGE

    def _set_projects(self, projects: list[Project]) -> None:
        self._projects = projects
        self._persist(PROJECTS_KEY, projects)

    def _set_categories(self, categories: list[Category]) -> None:
        self._categories = categories
        self._persist(CATEGORIES_KEY, categories)

    def clear_save_error(self) -> None:
        self.save_error = None

    def _new_id(self, existing: set[str]) -> str:
        candidate = int(self.clock() * 1000)
        while str(candidate) in existing:
            candidate += 1
        return str(candidate)

    # Project mutations

    def add_project(self, title: str, **values) -> Project:
        _check_fields(values, _PROJECT_FIELDS - {"order_index"})
        images = values.pop("images", [])
        project = Project(
            id=self._new_id({project.id for project in self._projects}),
            title=title,
            order_index=_next_order_index(self._projects),
            **values,
        )
        project = _with_images(project, images)
        self._set_projects([*self._projects, project])
        return project

    def update_project(self, project_id: str, **updates) -> Project:
        _check_fields(updates, _PROJECT_FIELDS)
        project = self.get_project(project_id)
        images = updates.pop("images", None)
        updated = replace(project, **updates)
        if images is not None:
            updated = _with_images(updated, images)
        self._set_projects(
            [updated if item.id == project_id else item for item in self._projects]
        )
        return updated

    def delete_project(self, project_id: str) -> None:
        self.get_project(project_id)
        self._set_projects(
            [project for project in self._projects if project.id != project_id]
        )

    def reorder_project(self, project_id: str, direction: str) -> None:
        reordered = _swap_order(self._projects, project_id, direction)
        if reordered is not self._projects:
            self._set_projects(reordered)

    def toggle_published(self, project_id: str) -> Project:
        project = self.get_project(project_id)
        return self.update_project(project_id, published=not project.published)

    def toggle_landing(self, project_id: str) -> Project:
        project = self.get_project(project_id)
        return self.update_project(
            project_id, show_on_landing=not project.show_on_landing
        )

    # Category mutations

    def add_category(self, name: str, description: str = "") -> Category:
        category = Category(
            id=self._new_id({category.id for category in self._categories}),
            name=name.strip(),
            description=description.strip(),
            order_index=_next_order_index(self._categories),
        )
        self._set_categories([*self._categories, category])
        return category

    def update_category(
        self, category_id: str, rename_projects: bool = False, **updates
    ) -> Category:
        """
        Update a category. With ``rename_projects``, a name change is carried to
        every project whose category text equals the old name.
        """
        _check_fields(updates, _CATEGORY_FIELDS)
        category = self.get_category(category_id)
        updated = replace(category, **updates)
        self._set_categories(
            [updated if item.id == category_id else item for item in self._categories]
        )
        if rename_projects and updated.name != category.name:
            renamed = [
                replace(project, category=updated.name)
                if project.category == category.name
                else project
                for project in self._projects
            ]
            self._set_projects(renamed)
        return updated

    def delete_category(self, category_id: str) -> None:
        self.get_category(category_id)
        self._set_categories(
            [category for category in self._categories if category.id != category_id]
        )

    def reorder_category(self, category_id: str, direction: str) -> None:
        reordered = _swap_order(self._categories, category_id, direction)
        if reordered is not self._categories:
            self._set_categories(reordered)

    # Publishing and exports

    def project_records(self) -> list[dict]:
        return [to_json_dict(project) for project in self._projects]

    def category_records(self) -> list[dict]:
        return [to_json_dict(category) for category in self.categories]

    def publish(self) -> None:
        """
        Push the working set to the remote store. Inline images are uploaded
        first and replaced by their public URLs.
        """
        if self.remote is None:
            raise RemoteStoreError("No remote store configured")

        published = []
        for project in self._projects:
            images = []
            for image in project.images:
                parsed = parse_data_url(image.url)
                if parsed:
                    content_type, data = parsed
                    url = self.remote.upload_image(
                        project.id,
                        image_filename(content_type, data),
                        data,
                        content_type,
                    )
                    image = replace(image, url=url)
                images.append(image)
            published.append(_with_images(project, images))
        self._set_projects(published)

        self.remote.save_projects(self.project_records())
        self.remote.save_categories(self.category_records())
        logger.info(
            "Published %d projects and %d categories",
            len(self._projects),
            len(self._categories),
        )

    def export_json(self) -> str:
        return pretty_json(self.project_records())

    def export_for_deploy(self, path: str | Path) -> Path:
        return build_deploy_package(
            self.project_records(), self.category_records(), path
        )

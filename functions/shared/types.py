from dataclasses import asdict, dataclass, field
from typing import List

from dacite import Config, from_dict

from shared.json_utils import convert_keys

DEFAULT_CROP_X = 50.0
DEFAULT_CROP_Y = 50.0
DEFAULT_CROP_SCALE = 1.0


@dataclass
class ProjectImage:
    """An image reference with the crop focus point (percent) and zoom factor."""

    url: str
    crop_x: float = DEFAULT_CROP_X
    crop_y: float = DEFAULT_CROP_Y
    crop_scale: float = DEFAULT_CROP_SCALE


@dataclass
class Project:
    id: str
    title: str
    description: str = ""
    images: List[ProjectImage] = field(default_factory=list)
    # Legacy single-image field, kept in sync with images[0].
    image_url: str = ""
    category: str = ""
    medium: str = ""
    year: str = ""
    order_index: int = 0
    published: bool = True
    show_on_landing: bool = False


@dataclass
class Category:
    id: str
    name: str
    description: str = ""
    order_index: int = 0


_DACITE_CONFIG = Config(check_types=False)


def project_from_dict(data: dict) -> Project:
    return from_dict(
        data_class=Project,
        data=convert_keys(data, "camel_to_snake"),
        config=_DACITE_CONFIG,
    )


def category_from_dict(data: dict) -> Category:
    return from_dict(
        data_class=Category,
        data=convert_keys(data, "camel_to_snake"),
        config=_DACITE_CONFIG,
    )


def to_json_dict(record: Project | Category | ProjectImage) -> dict:
    """Serialize a record to its camelCase wire form."""
    return convert_keys(asdict(record), "snake_to_camel")

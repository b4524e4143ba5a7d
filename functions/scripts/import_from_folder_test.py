import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path

from scripts import import_from_folder


class ImportFromFolderTest(unittest.TestCase):

    def setUp(self):
        self.source_dir = Path(tempfile.mkdtemp())
        self.out_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.source_dir)
        shutil.rmtree(self.out_dir)

    def _folder(self, name, *files):
        folder = self.source_dir / name
        folder.mkdir()
        for filename in files:
            (folder / filename).write_bytes(b"img")
        return folder

    def test_slugify(self):
        self.assertEqual(import_from_folder.slugify("La Jolla Residence!"), "la-jolla-residence")
        self.assertEqual(len(import_from_folder.slugify("x" * 100)), 60)

    def test_parse_folder_name(self):
        self.assertEqual(
            import_from_folder.parse_folder_name("A - B Tower - Hospitality"),
            ("A - B Tower", "Hospitality"),
        )
        self.assertEqual(import_from_folder.parse_folder_name("Untitled"), ("Untitled", None))

    def test_import_folders(self):
        self._folder("North Park - Misisng Middle", "2.png", "1.jpg", "notes.txt")
        self._folder("Mystery - Something Else", "a.jpg")
        self._folder("Empty - Hospitality")
        self._folder("Cafe - Hospitality", "a.webp")

        with self.assertLogs("scripts.import_from_folder", level="WARNING") as logs:
            projects = import_from_folder.import_folders(self.source_dir, self.out_dir)

        self.assertEqual([p["id"] for p in projects], ["cafe", "north-park"])
        self.assertEqual([p["orderIndex"] for p in projects], [1, 2])
        north_park = projects[1]
        self.assertEqual(north_park["category"], "Missing Middle Residential")
        self.assertEqual(
            [image["url"] for image in north_park["images"]],
            ["/images/north-park/1.jpg", "/images/north-park/2.png"],
        )
        self.assertEqual(north_park["imageUrl"], "/images/north-park/1.jpg")
        self.assertTrue((self.out_dir / "north-park" / "2.png").exists())
        self.assertFalse((self.out_dir / "north-park" / "notes.txt").exists())
        self.assertEqual(len(logs.output), 2)

    def test_main_writes_json(self):
        self._folder("Cafe - Hospitality", "a.jpg")
        data_dir = self.out_dir / "data"
        status = import_from_folder.main(
            [str(self.source_dir), "--images-dir", str(self.out_dir / "images"), "--data-dir", str(data_dir)]
        )
        self.assertEqual(status, 0)
        projects = json.loads((data_dir / "projects.json").read_text())
        categories = json.loads((data_dir / "categories.json").read_text())
        self.assertEqual(projects[0]["title"], "Cafe")
        self.assertEqual(len(categories), 6)
        self.assertEqual(categories[3]["name"], "Hospitality")

    def test_main_missing_source(self):
        missing = os.path.join(str(self.source_dir), "missing")
        self.assertEqual(import_from_folder.main([missing]), 1)


if __name__ == "__main__":
    unittest.main()

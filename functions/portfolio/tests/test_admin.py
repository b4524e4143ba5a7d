import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import MagicMock, patch

from portfolio.admin import AdminGate
from portfolio.config import Settings
from portfolio.local_db import InMemoryLocalStore
from portfolio.remote import RemoteStoreError
from portfolio.repository import PortfolioRepository
from scripts import admin_cli

PROJECTS = [
    {"id": "a", "title": "Alpha", "category": "Hospitality", "orderIndex": 1},
    {"id": "b", "title": "Beta", "category": "Hospitality", "orderIndex": 2},
]


class AdminGateTests(unittest.TestCase):
    def test_login_and_logout(self):
        gate = AdminGate("secret")
        self.assertFalse(gate.is_authenticated)
        self.assertFalse(gate.login("Secret"))
        self.assertFalse(gate.is_authenticated)
        self.assertTrue(gate.login("secret"))
        self.assertTrue(gate.is_authenticated)
        gate.logout()
        self.assertFalse(gate.is_authenticated)

    def test_unset_password_keeps_admin_closed(self):
        for password in (None, ""):
            gate = AdminGate(password)
            self.assertFalse(gate.login(""))
            self.assertFalse(gate.is_authenticated)


class AdminCliTests(unittest.TestCase):
    def setUp(self):
        patcher = patch(
            "scripts.admin_cli.get_settings",
            return_value=Settings(admin_password="pw", _env_file=None),
        )
        patcher.start()
        self.addCleanup(patcher.stop)
        self.local = InMemoryLocalStore()
        self.local.put("projects", PROJECTS)
        self.repo = PortfolioRepository(self.local)

    def _run(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            status = admin_cli.main(["--password", "pw", *argv], repo=self.repo)
        return status, out.getvalue(), err.getvalue()

    def test_wrong_password(self):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            status = admin_cli.main(["--password", "nope", "list"], repo=self.repo)
        self.assertEqual(status, 1)
        self.assertIn("Incorrect password", err.getvalue())

    def test_list(self):
        status, out, _ = self._run("list")
        self.assertEqual(status, 0)
        self.assertIn("Alpha", out)
        self.assertIn("2  Hospitality", out)

    def test_reorder_and_toggle(self):
        self.assertEqual(self._run("reorder", "b", "up")[0], 0)
        self.assertEqual(
            {p["id"]: p["orderIndex"] for p in self.local.get("projects")},
            {"a": 2, "b": 1},
        )
        status, out, _ = self._run("toggle-publish", "a")
        self.assertEqual(status, 0)
        self.assertIn("a: hidden", out)

    def test_unknown_id(self):
        status, _, err = self._run("toggle-landing", "zzz")
        self.assertEqual(status, 1)
        self.assertIn("Not found: zzz", err)

    def test_publish_without_remote_reports_error(self):
        status, _, err = self._run("publish")
        self.assertEqual(status, 1)
        self.assertIn("No remote store configured", err)

    def test_publish_error_from_remote(self):
        remote = MagicMock()
        remote.fetch_projects.return_value = PROJECTS
        remote.fetch_categories.return_value = []
        remote.save_projects.side_effect = RemoteStoreError("Unauthorized")
        self.repo = PortfolioRepository(self.local, remote=remote)
        status, _, err = self._run("publish")
        self.assertEqual(status, 1)
        self.assertIn("Error: Unauthorized", err)

    def test_export_json_to_stdout(self):
        status, out, _ = self._run("export-json")
        self.assertEqual(status, 0)
        self.assertIn('"title": "Alpha"', out)


if __name__ == "__main__":
    unittest.main()

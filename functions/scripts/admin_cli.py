"""
Password-gated admin commands over the portfolio repository.

Examples:
    python scripts/admin_cli.py list
    python scripts/admin_cli.py reorder north-park-fourplex up
    python scripts/admin_cli.py export-deploy --out deploy.zip
    python scripts/admin_cli.py publish
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio.admin import AdminGate
from portfolio.config import get_settings
from portfolio.dependencies import create_repository
from portfolio.remote import RemoteStoreError
from portfolio.repository import PortfolioRepository

logger = logging.getLogger(__name__)


def _flag(value: bool, label: str) -> str:
    return label if value else "-"


def cmd_list(repo: PortfolioRepository, args: argparse.Namespace) -> int:
    for project in sorted(repo.projects, key=lambda p: p.order_index):
        print(
            f"{project.order_index:>3}  {project.id:<32} "
            f"{_flag(project.published, 'pub'):<4}{_flag(project.show_on_landing, 'land'):<5}"
            f"{project.category or '-':<36} {project.title}"
        )
    print()
    for name, count in repo.category_counts().items():
        print(f"{count:>3}  {name}")
    return 0


def cmd_publish(repo: PortfolioRepository, args: argparse.Namespace) -> int:
    repo.publish()
    print("Published.")
    return 0


def cmd_export_json(repo: PortfolioRepository, args: argparse.Namespace) -> int:
    text = repo.export_json()
    if args.out:
        args.out.write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)
    return 0


def cmd_export_deploy(repo: PortfolioRepository, args: argparse.Namespace) -> int:
    path = repo.export_for_deploy(args.out)
    print(
        f"Wrote {path}. Unzip and copy projects.json and categories.json to the "
        "seed folder and images/ to public/images/."
    )
    return 0


def cmd_toggle_publish(repo: PortfolioRepository, args: argparse.Namespace) -> int:
    project = repo.toggle_published(args.project_id)
    print(f"{project.id}: {'published' if project.published else 'hidden'}")
    return 0


def cmd_toggle_landing(repo: PortfolioRepository, args: argparse.Namespace) -> int:
    project = repo.toggle_landing(args.project_id)
    print(f"{project.id}: landing {'on' if project.show_on_landing else 'off'}")
    return 0


def cmd_reorder(repo: PortfolioRepository, args: argparse.Namespace) -> int:
    if args.kind == "category":
        repo.reorder_category(args.record_id, args.direction)
    else:
        repo.reorder_project(args.record_id, args.direction)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Portfolio admin")
    parser.add_argument(
        "--password",
        default=None,
        help="Admin password (prompted for when omitted)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List projects and category counts").set_defaults(
        handler=cmd_list
    )
    sub.add_parser("publish", help="Push the working set to the remote store").set_defaults(
        handler=cmd_publish
    )

    export_json = sub.add_parser("export-json", help="Write projects as JSON")
    export_json.add_argument("--out", type=Path, default=None)
    export_json.set_defaults(handler=cmd_export_json)

    export_deploy = sub.add_parser("export-deploy", help="Write the deploy zip")
    export_deploy.add_argument("--out", type=Path, default=Path("deploy-package.zip"))
    export_deploy.set_defaults(handler=cmd_export_deploy)

    toggle_publish = sub.add_parser("toggle-publish", help="Show or hide a project")
    toggle_publish.add_argument("project_id")
    toggle_publish.set_defaults(handler=cmd_toggle_publish)

    toggle_landing = sub.add_parser("toggle-landing", help="Feature a project on the landing page")
    toggle_landing.add_argument("project_id")
    toggle_landing.set_defaults(handler=cmd_toggle_landing)

    reorder = sub.add_parser("reorder", help="Move a project or category")
    reorder.add_argument("record_id")
    reorder.add_argument("direction", choices=["up", "down"])
    reorder.add_argument("--kind", choices=["project", "category"], default="project")
    reorder.set_defaults(handler=cmd_reorder)
    return parser


def main(argv: list[str] | None = None, repo: PortfolioRepository | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")

    gate = AdminGate(get_settings().admin_password)
    password = args.password if args.password is not None else getpass.getpass("Password: ")
    if not gate.login(password):
        print("Incorrect password", file=sys.stderr)
        return 1

    repo = (repo or create_repository()).load()
    try:
        status = args.handler(repo, args)
    except RemoteStoreError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyError as exc:
        print(f"Not found: {exc.args[0]}", file=sys.stderr)
        return 1

    if repo.save_error:
        print(repo.save_error, file=sys.stderr)
        return 1
    return status


if __name__ == "__main__":
    sys.exit(main())

"""
Purge helper for user accounts (RGPD: droit à l'oubli).

Ce script orchestre la suppression d'un compte au niveau application (métadonnées, index de
recherche, stockage objet) avec audit trail, et permet d'inspecter ce qui serait supprimé.

Usage:
    python -m scripts.purge_user delete <user_id> [--mark-only]
    python -m scripts.purge_user pending
    python -m scripts.purge_user dump <user_id> [--with-storage-paths] [--json]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from drive_backend.core.container import Container
from drive_backend.core.logging import setup_logging
from drive_backend.domain.context import DeletionContext
from drive_backend.domain.entities import DriveItem, user_root_key
from drive_backend.domain.tree_walker import DirectoryTreeWalker
from drive_backend.domain.version_assets import VersionAssetResolver


def dump_user(ctx: DeletionContext, user_id: str, with_storage_paths: bool = False) -> dict:
    """
    Décrit l'arborescence d'un utilisateur sans rien supprimer.

    Args:
        ctx: Contexte des magasins.
        user_id: Identifiant de l'utilisateur.
        with_storage_paths: Inclure les chemins de stockage de chaque fichier.

    Returns:
        dict: {"user": ..., "items": [{"item", "path", "versions"}, ...]} en post-ordre.
    """
    user = ctx.users.find_one({"id": user_id})
    resolver = VersionAssetResolver(ctx)
    items: list[dict[str, Any]] = []

    def _visit(item: DriveItem, _children: list[None] | None, ancestors: list[DriveItem]) -> None:
        versions = []
        for assets in resolver.resolve_versions(item, include_storage_paths=with_storage_paths):
            entry: dict[str, Any] = {
                "version": assets.version.model_dump(),
                "file": assets.file.model_dump() if assets.file else None,
            }
            if with_storage_paths:
                entry["paths"] = assets.paths or []
            versions.append(entry)
        items.append(
            {
                "item": item.model_dump(),
                "path": "/".join([a.name for a in ancestors] + [item.name]),
                "versions": versions,
            }
        )

    DirectoryTreeWalker(ctx.items).walk(user_root_key(user_id), _visit)
    return {"user": user.model_dump() if user else None, "items": items}


def _print_dump(dump: dict) -> None:
    user = dump["user"]
    if user is None:
        print("user not found")
        return
    print(
        f"user={user['id']} deleted={user['deleted']} "
        f"epoch={user['delete_process_started_epoch']}"
    )
    for entry in dump["items"]:
        kind = "dir " if entry["item"]["is_directory"] else "file"
        print(f"{kind} {entry['item']['id']} /{entry['path']}")
        for v in entry["versions"]:
            file_id = v["file"]["id"] if v["file"] else "-"
            print(f"    version {v['version']['id']} file={file_id}")
            for path in v.get("paths", []):
                print(f"        {path}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="User deletion admin tool")
    sub = parser.add_subparsers(dest="command", required=True)
    p_delete = sub.add_parser("delete", help="Delete (or only mark) a user")
    p_delete.add_argument("user_id")
    p_delete.add_argument("--mark-only", action="store_true", help="Mark without deleting data")
    sub.add_parser("pending", help="List users with an outstanding deletion")
    p_dump = sub.add_parser("dump", help="Show what would be deleted for a user")
    p_dump.add_argument("user_id")
    p_dump.add_argument("--with-storage-paths", action="store_true")
    p_dump.add_argument("--json", action="store_true", help="Print JSON instead of text")
    return parser


def main(argv: list[str] | None = None, container: Container | None = None) -> int:
    """
    Point d'entrée principal de l'outil de suppression.

    Returns:
        int: code de sortie (0 si l'opération a abouti).
    """
    args = _build_parser().parse_args(argv)
    setup_logging(logging.INFO)
    container = container or Container()
    if args.command == "delete":
        controller = container.build_controller()
        outcome = controller.delete_user(args.user_id, delete_data=not args.mark_only)
        print(f"user={outcome.user_id} status={outcome.status}")
        expected = "deleting" if args.mark_only else "done"
        return 0 if outcome.status in (expected, "done") else 1
    if args.command == "pending":
        for user_id, epoch in container.build_controller().list_pending_deletions():
            print(f"{user_id} {epoch}")
        return 0
    dump = dump_user(
        container.build_deletion_context(), args.user_id, args.with_storage_paths
    )
    if args.json:
        print(json.dumps(dump, indent=2, sort_keys=True))
    else:
        _print_dump(dump)
    return 0 if dump["user"] is not None else 1


if __name__ == "__main__":  # pragma: no cover - script entry
    sys.exit(main())

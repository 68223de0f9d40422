"""vaultsmith init: create a workspace config with its first vault."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from vaultsmith.config import create_workspace_config
from vaultsmith.errors import ConfigError
from vaultsmith.materialize import scaffold_vault
from vaultsmith.paths import CONFIG_FILE, relative_fs_path, resolve_source
from vaultsmith.vaults import Vault


def add_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "init",
        help=f"Create {CONFIG_FILE} and a first vault",
        description=f"Create {CONFIG_FILE} in the workspace root with one vault.",
    )
    p.add_argument(
        "-w", "--workspace", default=None,
        help="Workspace root (default: cwd)",
    )
    p.add_argument(
        "--vault", default="vault",
        help="Path of the first vault, relative to the workspace (default: vault)",
    )
    p.add_argument(
        "--self-contained", action="store_true",
        help="Enable self-contained vaults (dev.enableSelfContainedVaults)",
    )
    p.set_defaults(func=run_init)


def run_init(args: argparse.Namespace) -> int:
    ws_root = Path(args.workspace or os.getcwd()).resolve()
    ws_root.mkdir(parents=True, exist_ok=True)

    resolved = resolve_source(args.vault, ws_root)
    if not resolved.inside:
        print(f"Error: First vault must be inside {ws_root}.", file=sys.stderr)
        return 1
    vault = Vault(fs_path=relative_fs_path(resolved.path, ws_root))

    try:
        create_workspace_config(
            ws_root, [vault], self_contained=args.self_contained,
        )
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if not resolved.path.exists() or not any(resolved.path.iterdir()):
        scaffold_vault(resolved.path)

    print(f"Initialized workspace at {ws_root} with vault '{vault.fs_path}'")
    return 0

"""vaultsmith vault: add, list, and repair vaults in a workspace."""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from pathlib import Path

from vaultsmith.config import load_settings, load_workspace_config
from vaultsmith.errors import ConfigError
from vaultsmith.log import get_logger
from vaultsmith.paths import CONFIG_FILE
from vaultsmith.vault_add import (
    ReloadHook,
    SourceType,
    VaultAddCommand,
    VaultAddRequest,
    repair_ignores,
)
from vaultsmith.vaults import Vault, get_vault_by_name

logger = get_logger("commands.vault")


def add_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "vault",
        help="Vault commands (add, list, ignore)",
        description="Add and inspect the vaults registered in a workspace.",
    )
    vs = p.add_subparsers(dest="vault_command", metavar="COMMAND")

    # vaultsmith vault add {local,remote} [path] [--remote URL] [--name N]
    add_p = vs.add_parser(
        "add",
        help="Add a local directory or a git remote as a vault",
        description=(
            "Materialize a vault from a local directory or a git remote and "
            f"register it in {CONFIG_FILE}."
        ),
    )
    add_p.add_argument(
        "source_type", choices=[t.value for t in SourceType],
        help="Where the vault comes from",
    )
    add_p.add_argument(
        "source_path", nargs="?", default=None,
        help=(
            "local: the vault directory; "
            "remote: clone destination inside the workspace (optional)"
        ),
    )
    add_p.add_argument(
        "--remote", dest="source_path_remote", default=None, metavar="URL",
        help="Git URL (or directory) to clone, for remote vaults",
    )
    add_p.add_argument(
        "--name", dest="source_name", default=None,
        help="Vault name (default: basename of the path or URL)",
    )
    add_p.add_argument(
        "-w", "--workspace", default=None,
        help="Workspace root (default: cwd)",
    )
    sc = add_p.add_mutually_exclusive_group()
    sc.add_argument(
        "--self-contained", dest="self_contained",
        action="store_const", const=True, default=None,
        help="Treat self-contained vaults as enabled for this run",
    )
    sc.add_argument(
        "--no-self-contained", dest="self_contained",
        action="store_const", const=False,
        help="Treat self-contained vaults as disabled for this run",
    )
    add_p.set_defaults(func=run_add)

    # vaultsmith vault list (default)
    list_p = vs.add_parser(
        "list",
        help="List registered vaults (default)",
        description="Show every vault in the workspace config.",
    )
    list_p.add_argument(
        "-w", "--workspace", default=None,
        help="Workspace root (default: cwd)",
    )
    list_p.set_defaults(func=run_list)

    # vaultsmith vault ignore <name>
    ignore_p = vs.add_parser(
        "ignore",
        help="Re-apply .gitignore entries for a vault",
        description=(
            "Add the vault's folder to the workspace .gitignore and its cache "
            "pattern to the vault's own .gitignore, if missing."
        ),
    )
    ignore_p.add_argument("name", help="Vault name")
    ignore_p.add_argument(
        "-w", "--workspace", default=None,
        help="Workspace root (default: cwd)",
    )
    ignore_p.set_defaults(func=run_ignore)

    p.set_defaults(func=run_list)


def _ws_root(args: argparse.Namespace) -> Path:
    return Path(getattr(args, "workspace", None) or os.getcwd()).resolve()


def make_reload_hook(command: str) -> ReloadHook:
    """Return the reload signal used by the CLI.

    With a configured ``commands.reload`` the command is run in the
    workspace root with ``VAULTSMITH_WS_ROOT`` set; a failure is reported
    but does not undo the add.
    """
    def _reload(ws_root: Path, vaults: list[Vault]) -> None:
        names = ", ".join(v.display_name for v in vaults)
        if not command:
            logger.debug("No reload command configured; new vault(s): %s", names)
            return
        logger.debug("Running reload command: %s", command)
        env = dict(os.environ, VAULTSMITH_WS_ROOT=str(ws_root))
        result = subprocess.run(command, shell=True, cwd=ws_root, env=env)
        if result.returncode != 0:
            print(
                f"Warning: reload command exited with {result.returncode}; "
                "reload the workspace manually.",
                file=sys.stderr,
            )

    return _reload


def run_add(args: argparse.Namespace) -> int:
    ws_root = _ws_root(args)
    config = load_workspace_config(ws_root)
    settings = load_settings(
        config,
        cli_overrides={"enable_self_contained_vaults": args.self_contained},
    )

    cmd = VaultAddCommand(
        ws_root,
        settings=settings,
        reload=make_reload_hook(settings.reload_command),
        config=config,
    )
    result = cmd.run(VaultAddRequest(
        source_type=SourceType(args.source_type),
        source_path=args.source_path,
        source_path_remote=args.source_path_remote,
        source_name=args.source_name,
    ))

    if result.workspace_remote is not None:
        print(
            f"Added workspace '{result.workspace_remote.name}' "
            f"with {len(result.vaults)} vault(s)"
        )
    for vault in result.vaults:
        print(f"Added vault '{vault.display_name}' ({vault.fs_path})")
    return 0


def run_list(args: argparse.Namespace) -> int:
    ws_root = _ws_root(args)
    try:
        config = load_workspace_config(ws_root)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    vaults = config.vaults
    if not vaults:
        print("No vaults registered.")
        return 0

    print(f"{'NAME':<24} {'WORKSPACE':<16} {'FSPATH'}")
    for vault in vaults:
        flags = []
        if vault.self_contained:
            flags.append("self-contained")
        if vault.remote is not None:
            flags.append(vault.remote.url)
        suffix = f"  [{', '.join(flags)}]" if flags else ""
        print(
            f"{vault.display_name:<24} {vault.workspace or '-':<16} "
            f"{vault.fs_path}{suffix}"
        )
    return 0


def run_ignore(args: argparse.Namespace) -> int:
    ws_root = _ws_root(args)
    config = load_workspace_config(ws_root)
    vault = get_vault_by_name(config.vaults, args.name)
    if vault is None:
        print(f"Error: No vault named '{args.name}'.", file=sys.stderr)
        return 1

    root_entry, vault_dirs = repair_ignores(ws_root, vault)
    if root_entry:
        print(f"Root .gitignore covers '{root_entry}'")
    for vault_dir in vault_dirs:
        print(f"Vault .gitignore updated in {vault_dir}")
    return 0

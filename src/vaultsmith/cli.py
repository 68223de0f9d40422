"""Full argparse tree with subparsers, dispatcher, and main() entry point."""

from __future__ import annotations

import argparse
import sys

from vaultsmith import __version__
from vaultsmith.errors import VaultsmithError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vaultsmith",
        description="Provision vaults and register them in a multi-root workspace.",
        epilog=(
            "common switches:\n"
            "  -w, --workspace DIR   workspace root holding vaultsmith.yml (default: cwd)\n"
            "  -v, --verbose         show debug output (stages, git commands)\n"
            "\n"
            "run 'vaultsmith COMMAND --help' for subcommand-specific options"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # Import and register all subcommand parsers.
    from vaultsmith.commands.init import add_parser as add_init_parser
    from vaultsmith.commands.vault_cmd import add_parser as add_vault_parser

    add_init_parser(subparsers)
    add_vault_parser(subparsers)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()

    import argcomplete
    argcomplete.autocomplete(parser)

    effective = list(argv if argv is not None else sys.argv[1:])

    # Extract -v/--verbose before subcommand dispatch.
    verbose = "-v" in effective or "--verbose" in effective
    effective = [a for a in effective if a not in ("-v", "--verbose")]

    from vaultsmith.log import setup_logging
    setup_logging(verbose=verbose)

    # Handle top-level --help and --version before argparse dispatch
    # (kept off the parser so they don't appear in tab-completion).
    if not effective or effective[0] in ("-h", "--help"):
        parser.print_help()
        sys.exit(0)
    if effective[0] == "--version":
        print(f"vaultsmith {__version__}")
        sys.exit(0)

    args = parser.parse_args(effective)

    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        sys.exit(0)

    try:
        rc = func(args)
    except VaultsmithError as e:
        where = f" ({e.stage})" if e.stage else ""
        print(f"Error{where}: {e}", file=sys.stderr)
        rc = 1
    except KeyboardInterrupt:
        print()
        rc = 130

    sys.exit(rc)

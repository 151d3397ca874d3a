"""
credbridge CLI — drive the plugin by hand against a provisioning service.

Usage:
    credbridge version                      # Show version
    credbridge type                         # Show the plugin type name
    credbridge config [--config FILE]       # Show the effective connection config
    credbridge issue --statement '{"priv": 1, "dbname": "app"}' --password PW
    credbridge revoke V-K3J9ZQ0AB1X_rw --statement '{"dbname": "app"}'

FILE is a YAML mapping with the same keys the host passes to initialize
(connection_url, timeout, keep_alive, idle_conn_timeout, max_idle_conns).
The token always comes from $mysql_token.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from credbridge.config import ConnectionConfig, get_config
from credbridge.errors import ConfigError, CredentialError


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="credbridge",
        description="Dynamic database credentials delegated to a remote provisioning service.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("version", help="Show version")
    subparsers.add_parser("type", help="Show plugin type name")

    config_parser = subparsers.add_parser("config", help="Show effective connection config")
    config_parser.add_argument("--config", type=Path, help="YAML initialization mapping")

    issue_parser = subparsers.add_parser("issue", help="Create a user")
    issue_parser.add_argument("--statement", required=True, help="Create statement (JSON object)")
    issue_parser.add_argument("--password", required=True, help="Password for the new user")
    issue_parser.add_argument("--config", type=Path, help="YAML initialization mapping")
    issue_parser.add_argument("--timeout", type=float, help="Per-call timeout in seconds")

    revoke_parser = subparsers.add_parser("revoke", help="Delete a user")
    revoke_parser.add_argument("username", help="Username returned by issue")
    revoke_parser.add_argument("--statement", required=True, help="Revocation statement (JSON object)")
    revoke_parser.add_argument("--config", type=Path, help="YAML initialization mapping")
    revoke_parser.add_argument("--timeout", type=float, help="Per-call timeout in seconds")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else get_config().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "version":
        from credbridge import __version__

        print(f"credbridge {__version__}")
        return 0

    try:
        if args.command == "type":
            return _cmd_type()
        elif args.command == "config":
            return _cmd_config(args)
        elif args.command == "issue":
            return _cmd_issue(args)
        elif args.command == "revoke":
            return _cmd_revoke(args)
    except CredentialError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 0


def load_mapping(path: Path | None) -> dict[str, Any]:
    """Load a YAML initialization mapping. Missing path means an empty mapping."""
    if path is None:
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config {path} must be a mapping, got {type(data).__name__}")
    return data


def _cmd_type() -> int:
    from credbridge.orchestrator import TYPE_NAME

    print(TYPE_NAME)
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    cfg = ConnectionConfig.from_mapping(load_mapping(args.config))
    for key, value in asdict(cfg).items():
        print(f"{key}: {value}")
    return 0


def _open_plugin(config_path: Path | None):
    import credbridge
    from credbridge.contract import InitializeRequest

    db = credbridge.new()
    try:
        db.initialize(InitializeRequest(config=load_mapping(config_path)))
    except CredentialError:
        _release(db)
        raise
    return db


def _release(db) -> None:
    """Close the pooled HTTP client behind a (possibly wrapped) plugin."""
    getattr(db, "database", db).close_client()


def _cmd_issue(args: argparse.Namespace) -> int:
    from credbridge.contract import NewUserRequest, Statements

    db = _open_plugin(args.config)
    try:
        resp = db.new_user(
            NewUserRequest(statements=Statements([args.statement]), password=args.password),
            timeout=args.timeout,
        )
    finally:
        _release(db)
    print(resp.username)
    return 0


def _cmd_revoke(args: argparse.Namespace) -> int:
    from credbridge.contract import DeleteUserRequest, Statements

    db = _open_plugin(args.config)
    try:
        db.delete_user(
            DeleteUserRequest(username=args.username, statements=Statements([args.statement])),
            timeout=args.timeout,
        )
    finally:
        _release(db)
    print(f"deleted {args.username}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

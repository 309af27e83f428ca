"""Verify the relay's environment configuration before (re)starting it.

Commands:

``check``
    Load ``AppSettings`` from the given ``.env`` file and report missing or
    malformed entries.
``record`` / ``verify``
    Store, then later compare, a SHA256 checksum of the ``.env`` file so
    unexpected edits are noticed.
``token``
    Validate settings, then perform a client-credentials exchange against the
    Jibble token endpoint to prove the client id/secret are accepted.

Example usages::

    python -m scripts.check_env record --env-file /srv/relay/.env \
        --hash-file /srv/relay/.env.sha256
    python -m scripts.check_env verify --env-file /srv/relay/.env \
        --hash-file /srv/relay/.env.sha256
    python -m scripts.check_env token --env-file /srv/relay/.env
"""

from __future__ import annotations

import argparse
import asyncio
import hashlib
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from app.clients.jibble_auth import JibbleOAuthClient
from app.core.config import AppSettings, _load_env_file
from app.core.errors import AuthError

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_AUTH_ERROR = 4
EXIT_RUNTIME_ERROR = 5


def _compute_hash(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _load_settings(env_file: Path) -> AppSettings:
    _load_env_file(str(env_file))
    return AppSettings(_env_file=str(env_file))  # type: ignore[call-arg]


def _record_checksum(env_file: Path, hash_file: Path) -> int:
    checksum = _compute_hash(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded checksum to {hash_file} ({checksum})")
    return EXIT_OK


def _verify_checksum(env_file: Path, hash_file: Path) -> int:
    if not hash_file.exists():
        print(
            f"Expected checksum file {hash_file} is missing. "
            "Re-run with the 'record' command to establish a baseline.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _compute_hash(env_file)
    if expected == actual:
        print("Environment checksum OK.")
        return EXIT_OK

    print(
        "Environment checksum mismatch!\n"
        f"  expected: {expected}\n"
        f"  actual:   {actual}\n"
        "Investigate recent changes before restarting the relay.",
        file=sys.stderr,
    )
    return EXIT_CHECKSUM_ERROR


def _check_token(settings: AppSettings) -> int:
    client = JibbleOAuthClient(settings.jibble)
    try:
        token = asyncio.run(client.request_token())
    except AuthError as exc:
        print(f"Jibble rejected the client credentials: {exc.message}", file=sys.stderr)
        return EXIT_AUTH_ERROR
    print(f"Jibble issued an access token ({token[:8]}...).")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate relay settings, detect .env drift and test Jibble credentials."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_env_file(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env in the repo root).",
        )

    for name, help_text in (
        ("record", "Validate settings and store the checksum baseline."),
        ("verify", "Validate settings and compare the checksum with the baseline."),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        add_env_file(subparser)
        subparser.add_argument(
            "--hash-file",
            required=True,
            type=Path,
            help="Location of the checksum baseline.",
        )

    add_env_file(
        subparsers.add_parser("check", help="Validate settings only.")
    )
    add_env_file(
        subparsers.add_parser(
            "token", help="Validate settings and request a Jibble access token."
        )
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    env_file: Path = args.env_file
    if not env_file.exists():
        print(
            f"Environment file {env_file} does not exist. "
            "Ensure the path is correct or create it before running this tool.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    handlers: dict[str, Callable[[], int]] = {
        "record": lambda: _record_checksum(env_file, args.hash_file),
        "verify": lambda: _verify_checksum(env_file, args.hash_file),
        "check": lambda: EXIT_OK,
        "token": lambda: _check_token(settings),
    }
    return handlers[args.command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())

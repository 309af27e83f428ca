"""Tests for the environment check script."""

from __future__ import annotations

from pathlib import Path

import pytest

from scripts import check_env

REQUIRED_ENV_KEYS = [
    "JIBBLE_CLIENT_ID",
    "JIBBLE_CLIENT_SECRET",
]


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


def _clear_required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in REQUIRED_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.mark.parametrize("command", ["record", "verify", "check", "token"])
def test_main_requires_existing_env_file(tmp_path: Path, command: str) -> None:
    env_file = tmp_path / ".missing-env"
    hash_file = tmp_path / ".env.sha256"

    argv = [command, "--env-file", str(env_file)]
    if command in ("record", "verify"):
        argv.extend(["--hash-file", str(hash_file)])

    exit_code = check_env.main(argv)
    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_record_and_verify_detects_mismatched_checksum(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"
    argv_tail = ["--env-file", str(env_file), "--hash-file", str(hash_file)]

    _clear_required_env(monkeypatch)
    _write_env(env_file, JIBBLE_CLIENT_ID="abc", JIBBLE_CLIENT_SECRET="secret")

    assert check_env.main(["record", *argv_tail]) == check_env.EXIT_OK
    assert hash_file.read_text(encoding="utf-8").strip()

    _clear_required_env(monkeypatch)
    assert check_env.main(["verify", *argv_tail]) == check_env.EXIT_OK

    _write_env(env_file, JIBBLE_CLIENT_ID="abc", JIBBLE_CLIENT_SECRET="different")

    _clear_required_env(monkeypatch)
    assert check_env.main(["verify", *argv_tail]) == check_env.EXIT_CHECKSUM_ERROR


def test_validation_failure_for_missing_required_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"

    _clear_required_env(monkeypatch)
    _write_env(env_file, JIBBLE_CLIENT_ID="abc")

    exit_code = check_env.main(["check", "--env-file", str(env_file)])
    assert exit_code == check_env.EXIT_VALIDATION_ERROR


def test_token_command_reports_rejected_credentials(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    from app.core.errors import AuthError

    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    _write_env(env_file, JIBBLE_CLIENT_ID="abc", JIBBLE_CLIENT_SECRET="wrong")

    async def _reject(self) -> str:
        raise AuthError("Token request rejected with status 400.")

    monkeypatch.setattr(check_env.JibbleOAuthClient, "request_token", _reject)

    exit_code = check_env.main(["token", "--env-file", str(env_file)])
    assert exit_code == check_env.EXIT_AUTH_ERROR


def test_token_command_succeeds(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    _write_env(env_file, JIBBLE_CLIENT_ID="abc", JIBBLE_CLIENT_SECRET="right")

    async def _issue(self) -> str:
        return "issued-token-value"

    monkeypatch.setattr(check_env.JibbleOAuthClient, "request_token", _issue)

    assert check_env.main(["token", "--env-file", str(env_file)]) == check_env.EXIT_OK

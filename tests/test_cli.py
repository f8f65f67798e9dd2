"""Tests for the console prompter and the command line entry point.

CLI tests stick to commands that need no network or credentials, plus
the error path where a terminal error becomes exit status 1.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from aoctools import cli
from aoctools.prompter import ConsolePrompter


@pytest.mark.asyncio
async def test_console_prompter_trims_and_reasks() -> None:
    answers = iter(["   ", "", "  token-value  "])
    prompts = []

    def read(prompt: str) -> str:
        prompts.append(prompt)
        return next(answers)

    value = await ConsolePrompter(read).ask_for_non_empty_string("Enter:", "Required")
    assert value == "token-value"
    assert prompts == ["Enter: ", "Required ", "Required "]


def test_dir_command_prints_padded_directory(capsys, tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    assert cli.main(["dir", "4"]) == 0
    assert capsys.readouterr().out.strip().endswith("04")


def test_run_command_interpolates_template(capsys, tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    assert cli.main(["run", "python", "01/main.py"]) == 0
    assert capsys.readouterr().out.strip() == "python 01/main.py"


def test_unknown_template_exits_with_error(capsys) -> None:
    assert cli.main(["run", "cobol", "main.cob"]) == 1


def test_input_with_invalid_day_exits_with_error(monkeypatch) -> None:
    monkeypatch.setenv("AOC_CREDENTIAL_BACKEND", "env")
    assert cli.main(["input", "--year", "2023", "--day", "30"]) == 1


def test_next_command_prints_iso_instant(capsys, monkeypatch) -> None:
    fixed = datetime(2023, 12, 10, 6, tzinfo=timezone.utc)
    monkeypatch.setattr(cli.ChallengeClock, "now", lambda self: fixed)
    assert cli.main(["next"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "2023-12-10T05:00:00+00:00"
    assert out[1] == "started 1:00:00 ago"


def test_token_with_read_only_store_exits_without_prompting(monkeypatch) -> None:
    monkeypatch.setenv("AOC_CREDENTIAL_BACKEND", "env")
    monkeypatch.delenv("AOC_SESSION", raising=False)
    monkeypatch.delenv("AOC_SESSION_FILE", raising=False)
    prompts = []

    async def ask(self, message: str, retry_message: str) -> str:
        prompts.append(message)
        return "typed-token"

    monkeypatch.setattr(ConsolePrompter, "ask_for_non_empty_string", ask)
    assert cli.main(["token"]) == 1
    assert prompts == []


def test_token_from_env_store_is_printed(capsys, monkeypatch) -> None:
    monkeypatch.setenv("AOC_CREDENTIAL_BACKEND", "env")
    monkeypatch.delenv("AOC_SESSION_FILE", raising=False)
    monkeypatch.setenv("AOC_SESSION", "env-token")
    assert cli.main(["token"]) == 0
    assert capsys.readouterr().out.strip() == "env-token"

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from cli.run import EXIT_CONFIG, EXIT_FAILURE, EXIT_OK, build_parser, main
from conftest import make_topic, utc
from core.errors import PostValidationError
from core.schemas import Post
from services.scheduler import Window
from workflows.digest import DigestResult

WINDOW = Window(start=utc(2026, 2, 3, 6), end=utc(2026, 2, 3, 14), post_type="midday")


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    monkeypatch.setattr("cli.run.setup_logging", lambda level: None)
    monkeypatch.setattr("services.config.load_dotenv", lambda: None)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("DIGEST_CONFIG", raising=False)
    monkeypatch.setenv("MODELS_TOKEN", "m-token")

    path = tmp_path / "config.yml"
    path.write_text(f"output:\n  posts_dir: {tmp_path / 'posts'}\n")
    return str(path)


def test_default_command_is_generate():
    args = build_parser().parse_args([])
    assert args.command == "generate"
    assert args.dry_run is False


@pytest.mark.parametrize("argv", [
    ["generate", "--config", "x.yml", "--debug"],
    ["--config", "x.yml", "--debug", "generate"],
    ["--config", "other.yml", "generate", "--config", "x.yml", "--debug"],
])
def test_global_options_accepted_after_subcommand(argv):
    args = build_parser().parse_args(argv)
    assert args.config == "x.yml"
    assert args.debug is True


def test_subcommand_keeps_top_level_config():
    args = build_parser().parse_args(["--config", "x.yml", "quota"])
    assert args.config == "x.yml"
    assert args.debug is False


def test_now_must_be_iso():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["generate", "--now", "yesterday"])


def test_missing_token_exits_with_config_code(cli_env, monkeypatch):
    monkeypatch.delenv("MODELS_TOKEN")
    run = AsyncMock()
    monkeypatch.setattr("cli.run.DigestPipeline.run", run)

    assert asyncio.run(main(["--config", cli_env, "generate"])) == EXIT_CONFIG
    run.assert_not_called()


def test_generate_dry_run_prints_post(cli_env, monkeypatch, capsys):
    post = Post(title="Headline", date=WINDOW.end, type="midday", topics=[make_topic(5)])
    run = AsyncMock(return_value=DigestResult(window=WINDOW, events=[], topics=post.topics, post=post))
    monkeypatch.setattr("cli.run.DigestPipeline.run", run)

    code = asyncio.run(main(["--config", cli_env, "generate", "--dry-run", "--now", "2026-02-03T13:30:00Z"]))

    assert code == EXIT_OK
    assert json.loads(capsys.readouterr().out)["title"] == "Headline"
    assert run.call_args.args[0] == utc(2026, 2, 3, 13, 30)


def test_generate_accepts_config_after_subcommand(cli_env, monkeypatch, capsys):
    post = Post(title="Headline", date=WINDOW.end, type="midday", topics=[make_topic(5)])
    run = AsyncMock(return_value=DigestResult(window=WINDOW, events=[], topics=post.topics, post=post))
    monkeypatch.setattr("cli.run.DigestPipeline.run", run)

    code = asyncio.run(main(["generate", "--now", "2026-02-03T13:30:00Z", "--config", cli_env, "--dry-run"]))

    assert code == EXIT_OK
    assert json.loads(capsys.readouterr().out)["type"] == "midday"


def test_nothing_to_publish_exits_cleanly(cli_env, monkeypatch):
    run = AsyncMock(return_value=DigestResult(window=WINDOW, events=[], topics=[]))
    monkeypatch.setattr("cli.run.DigestPipeline.run", run)
    assert asyncio.run(main(["--config", cli_env])) == EXIT_OK


def test_invalid_post_exits_non_zero(cli_env, monkeypatch):
    monkeypatch.setattr("cli.run.DigestPipeline.run", AsyncMock(side_effect=PostValidationError("bad score")))
    assert asyncio.run(main(["--config", cli_env, "generate"])) == EXIT_FAILURE


def test_backfill_writes_payload(cli_env, monkeypatch, tmp_path):
    payload = {"metadata": {"generatedAt": "2026-02-03T14:00:00Z"}, "events": [{"source": "github"}]}
    backfill = AsyncMock(return_value=payload)
    monkeypatch.setattr("cli.run.run_backfill", backfill)
    out = tmp_path / "events.json"

    code = asyncio.run(main([
        "--config", cli_env, "backfill", "--end", "2026-02-03T14:00:00Z", "--hours", "12", "--output", str(out),
    ]))

    assert code == EXIT_OK
    assert json.loads(out.read_text()) == payload
    assert backfill.call_args.kwargs["hours"] == 12
    assert backfill.call_args.kwargs["end"] == utc(2026, 2, 3, 14)

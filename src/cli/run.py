import argparse
import asyncio
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from core.errors import ConfigError
from delivery.file_delivery import FileDelivery
from ingestion.base import parse_timestamp
from ingestion.source_factory import create_adapters_from_config
from services.config import Config, load_config
from services.github_quota import check_quota
from services.llm import ChatClient
from services.logging import SUCCESS, setup_logging
from services.post_archive import PostArchive
from workflows.backfill import render_payload, run_backfill
from workflows.digest import DigestPipeline

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def _instant(value: str) -> datetime:
    try:
        return parse_timestamp(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 instant: {value!r}")


def _global_options(suppress: bool) -> argparse.ArgumentParser:
    # Subcommand copies default to SUPPRESS so they only override when given
    options = argparse.ArgumentParser(add_help=False)
    options.add_argument('--config', default=argparse.SUPPRESS if suppress else None,
                         help='Path to config.yml (default: resources/config.yml or $DIGEST_CONFIG)')
    options.add_argument('--debug', action='store_true',
                         default=argparse.SUPPRESS if suppress else False,
                         help='Enable debug logging')
    return options


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="activity-digest",
        description="Cluster recent GitHub and Bluesky activity into a digest post",
        parents=[_global_options(suppress=False)],
    )
    common = _global_options(suppress=True)

    sub = parser.add_subparsers(dest='command')

    generate = sub.add_parser('generate', parents=[common],
                              help='Generate the post for the current publication mark')
    generate.add_argument('--now', type=_instant, default=None,
                          help='Pretend the run happens at this instant (ISO-8601, UTC if no offset)')
    generate.add_argument('--dry-run', action='store_true',
                          help='Print the post instead of writing it')

    backfill = sub.add_parser('backfill', parents=[common], help='Dump raw events for an explicit window')
    backfill.add_argument('--end', type=_instant, required=True,
                          help='Window end (ISO-8601)')
    backfill.add_argument('--hours', type=float, default=None,
                          help='Window length in hours (default: schedule.lookback_hours)')
    backfill.add_argument('--output', default=None,
                          help='Write the payload here instead of stdout')

    sub.add_parser('quota', parents=[common], help='Show the remaining GitHub Models quota')

    parser.set_defaults(command='generate', now=None, dry_run=False)
    return parser


async def generate(config: Config, now: Optional[datetime], dry_run: bool) -> int:
    config.require_credentials()

    # Build everything before the first request so a bad config fails fast
    sources = create_adapters_from_config(config)
    llm = ChatClient.from_config(config.llm, config.MODELS_TOKEN)
    delivery = None if dry_run else FileDelivery(config.output.posts_dir)

    pipeline = DigestPipeline(
        config=config,
        llm=llm,
        sources=sources,
        delivery=delivery,
        archive=PostArchive(config.output.posts_dir),
    )

    result = await pipeline.run(now or datetime.now(timezone.utc))
    if result.post is None:
        return EXIT_OK

    if dry_run:
        sys.stdout.write(result.post.to_json())
    logger.log(SUCCESS, f"[TITLE] {result.post.title}")
    return EXIT_OK


async def backfill(config: Config, end: datetime, hours: Optional[float], output: Optional[str]) -> int:
    config.require_credentials(models=False)
    sources = create_adapters_from_config(config)

    payload = await run_backfill(config=config, sources=sources, end=end, hours=hours)
    if payload is None:
        return EXIT_OK

    rendered = render_payload(payload)
    if output:
        Path(output).write_text(rendered, encoding="utf-8")
        logger.log(SUCCESS, f"Wrote {len(payload['events'])} events to {output}")
    else:
        sys.stdout.write(rendered)
    return EXIT_OK


async def quota(config: Config) -> int:
    config.require_credentials(github=False)

    info = await check_quota(config.MODELS_TOKEN)
    if info is None:
        logger.error("Enable the 'Models' scope in your token settings.")
        return EXIT_FAILURE

    logger.info(
        f"Resource: {info.resource} | Remaining: {info.remaining} / {info.limit} | "
        f"Resets: {info.reset_at.isoformat()} ({info.minutes_until_reset()}m)"
    )
    return EXIT_OK


async def main(argv: Optional[List[str]] = None) -> int:
    start_time = time.perf_counter()
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.debug else logging.INFO)

    try:
        config = load_config(args.config)

        if args.command == 'backfill':
            code = await backfill(config, args.end, args.hours, args.output)
        elif args.command == 'quota':
            code = await quota(config)
        else:
            logger.info("Generating topic digest")
            code = await generate(config, args.now, args.dry_run)

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG
    except Exception as e:
        # An invalid post or a failed write must exit non-zero
        logger.exception(f"Critical failure: {e}")
        return EXIT_FAILURE

    end_time = time.perf_counter()
    logger.info(f"Total time: {end_time - start_time:.2f}s")
    return code


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()

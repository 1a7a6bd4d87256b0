"""
Collector entry point for scheduled triggers.

    python -m collector.run --source ALL
    python -m collector.run --enrich-only --limit 50

Exit codes: 0 success, 1 run failed, 2 another job is running.
"""
import argparse
import asyncio
import logging
import sys

from collector.orchestrator import CollectionConflictError
from collector.services import build_enrichment_service, build_orchestrator
from collector.sources import SourceName
from database.connection import DatabaseConnection
from database.repositories.job_repo import JobStatus
from shared.config import settings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SOURCE_CHOICES = [
    SourceName.ALL,
    SourceName.GOOGLE,
    SourceName.NAVER,
    SourceName.COUPANG,
    SourceName.GOOGLE_TRENDS,
]


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one article/product collection job.")
    parser.add_argument("--source", choices=SOURCE_CHOICES, default=SourceName.ALL)
    parser.add_argument(
        "--enrich-only",
        action="store_true",
        help="Skip collection and summarize one batch of articles"
    )
    parser.add_argument("--limit", type=int, default=settings.enrich_default_limit)
    return parser.parse_args(argv)


async def main(args: argparse.Namespace) -> int:
    db = await DatabaseConnection.init_mongo()

    try:
        if args.enrich_only:
            service = build_enrichment_service(db)
            try:
                report = await service.enrich(args.limit)
            finally:
                await service.aclose()
            logger.info(
                f"Enrichment: {report.processed} processed, {report.succeeded} succeeded, "
                f"{report.failed} failed"
            )
            return 0

        redis_client = await DatabaseConnection.init_redis()
        orchestrator = build_orchestrator(db, redis_client)
        try:
            result = await orchestrator.run_collection(args.source)
        except CollectionConflictError as e:
            logger.error(str(e))
            return 2
        finally:
            await orchestrator.aclose()

        for error in result.errors:
            logger.warning(error)
        return 0 if result.status == JobStatus.COMPLETED else 1
    finally:
        await DatabaseConnection.close_connections()


def cli() -> None:
    sys.exit(asyncio.run(main(parse_args())))


if __name__ == "__main__":
    cli()

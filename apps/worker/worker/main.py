import argparse
import logging
import time

import anyio
import schedule
from supabase import create_client

from brush_core.config import LearningSettings
from brush_learning.batch.learning_loop import LearningLoop, LearningRunReport
from brush_learning.ingest.learning_signals_repo import SupabaseSignalRepo
from brush_learning.profile.preferences_repo import SupabasePreferencesRepo

logger = logging.getLogger(__name__)


def _validate_env(settings: LearningSettings) -> None:
    missing = []
    if not settings.supabase_url:
        missing.append("SUPABASE_URL")
    if not settings.supabase_api_key:
        missing.append("SUPABASE_API_KEY")
    if missing:
        raise EnvironmentError(f"Missing required env vars: {', '.join(missing)}")


def build_learning_loop(settings: LearningSettings, client=None) -> LearningLoop:
    client = client or create_client(settings.supabase_url, settings.supabase_api_key)
    prefs_repo = SupabasePreferencesRepo(client)
    return LearningLoop(
        signals=SupabaseSignalRepo(client),
        profiles=prefs_repo,
        registry=prefs_repo,
        lookback_days=settings.lookback_days,
        decay_days=settings.decay_days,
        concurrency=settings.batch_concurrency,
    )


def run_once(loop: LearningLoop) -> LearningRunReport:
    logger.info("=" * 60)
    logger.info("Starting nightly learning loop")
    logger.info("=" * 60)
    report = anyio.run(loop.run)
    logger.info(
        "Learning loop finished: %d succeeded, %d failed in %.1fs",
        report.succeeded,
        report.failed,
        (report.finished_at - report.started_at).total_seconds(),
    )
    for failure in report.failures:
        logger.warning("  %s: %s: %s", failure.user_id, failure.error_type, failure.error)
    return report


def _safe_run(loop: LearningLoop) -> None:
    # keep the scheduler alive when a whole run fails (e.g. registry down)
    try:
        run_once(loop)
    except Exception:
        logger.exception("Learning loop run aborted")


def main():
    parser = argparse.ArgumentParser(description="Nightly preference learning loop")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single recompute of all opted-in users and exit",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    settings = LearningSettings()
    _validate_env(settings)
    loop = build_learning_loop(settings)

    if args.once:
        report = run_once(loop)
        raise SystemExit(0 if report.ok else 1)

    logger.info("[worker] %s scheduled daily at %s", settings.app_name, settings.nightly_run_at)
    schedule.every().day.at(settings.nightly_run_at).do(_safe_run, loop)
    while True:
        schedule.run_pending()
        time.sleep(30)


if __name__ == "__main__":
    main()

"""
``radar-update``: run one batch cycle of the opportunity radar.

Meant for an external scheduler (cron, CI workflow): one invocation, one run.
Exit status is 0 when the run completes (even if some sources or items
failed) and 1 on a startup problem or an unexpected error.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from config.settings import Settings
from radar.pipeline import IngestionPipeline

logger = logging.getLogger(__name__)


def main() -> int:
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = Settings()
        settings.validate()
    except ValueError as exc:
        logger.error("Configuration error: %s", exc)
        return 1

    try:
        report = IngestionPipeline(settings).run()
    except Exception:
        logger.exception("Radar update failed")
        return 1

    print(f"Added: {report.added}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

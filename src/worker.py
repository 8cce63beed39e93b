from __future__ import annotations

import logging
import os
import time

from botocore.exceptions import BotoCoreError, ClientError

from src.adapters.persistence import LocalReferenceRepository, S3GraphRepository
from src.app.ports.output import IGraphRepository
from src.app.services.graph_builder_service import GraphBuilderService

logger = logging.getLogger(__name__)


def run_once(builder: GraphBuilderService, repository: IGraphRepository) -> None:
    report = builder.build_and_publish(repository)
    for warning in report.warnings:
        logger.warning("Graph %s: %s", report.snapshot.version, warning)


def main() -> None:
    """Graph builder worker.

    Env vars:
      - GRAPH_BUCKET / GRAPH_PREFIX: publication target (see S3GraphRepository)
      - REFERENCE_DATA_PATH: input reference data
      - WORKER_LOOP: rebuild forever when truthy (default: 0)
      - WORKER_INTERVAL_S: seconds between rebuilds (default: 3600)
    """

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    repository = S3GraphRepository()

    loop = os.getenv("WORKER_LOOP", "0").strip().lower() not in {"", "0", "false", "no"}
    interval_s = float(os.getenv("WORKER_INTERVAL_S", "3600"))

    while True:
        started = time.monotonic()
        # Re-read reference data on every run.
        reference = LocalReferenceRepository()
        builder = GraphBuilderService(
            stop_repository=reference, flight_repository=reference
        )
        try:
            run_once(builder, repository)
        except (BotoCoreError, ClientError, OSError, RuntimeError, ValueError):
            if not loop:
                raise
            # Keep the last published version and retry on the next tick.
            logger.exception("Graph build failed")
        logger.info("Worker run finished in %.1fs", time.monotonic() - started)

        if not loop:
            return
        time.sleep(interval_s)


if __name__ == "__main__":
    main()

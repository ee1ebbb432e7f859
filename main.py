"""
Main entry point – runs every configured inbox pipeline once.
"""

import asyncio
import logging
import os
import signal
import sys

from dotenv import load_dotenv

# Add project root to PYTHONPATH so imports work when running this script directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.pipeline_orchestrator import run_all, load_pipelines_config
from core.plugin_loader import refresh_registry, list_available


async def main() -> int:
    load_dotenv()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s"
    )
    logger = logging.getLogger(__name__)

    logger.info("Discovering plugins...")
    refresh_registry()
    available_transforms = list_available()
    logger.info(f"Discovered {len(available_transforms)} transform classes:")
    for name in available_transforms:
        logger.info(f"  - {name}")

    config_file = os.getenv("PIPELINES_CONFIG", "pipelines.yml")
    pipelines_cfg = load_pipelines_config(config_file)
    if not pipelines_cfg:
        logger.error(f"No pipelines configured in {config_file}. Exiting.")
        return 1

    logger.info(f"Loaded {len(pipelines_cfg)} pipeline(s)")
    for pipeline in pipelines_cfg:
        name = pipeline.get("name", "unnamed")
        chain_len = len(pipeline.get("chain", []))
        logger.info(f"  - {name}: {chain_len} stages")

    stop_event = asyncio.Event()

    def signal_handler():
        logger.info("Received shutdown signal")
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        asyncio.get_running_loop().add_signal_handler(sig, signal_handler)

    logger.info("Starting pipelines...")
    pipeline_task = asyncio.create_task(run_all(pipelines_cfg))
    stop_task = asyncio.create_task(stop_event.wait())

    try:
        await asyncio.wait([stop_task, pipeline_task], return_when=asyncio.FIRST_COMPLETED)
    finally:
        if not pipeline_task.done():
            logger.info("Cancelling pipelines...")
            pipeline_task.cancel()
            try:
                await pipeline_task
            except asyncio.CancelledError:
                pass
        stop_task.cancel()
        logger.info("Shutdown complete")

    if pipeline_task.cancelled():
        return 130
    results = pipeline_task.result()
    failed = results.count(False)
    if failed:
        logger.error(f"{failed}/{len(results)} pipeline(s) failed")
    return 1 if failed else 0


def run_pipeline_system():
    """Entry point that can be called from other scripts."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run_pipeline_system()

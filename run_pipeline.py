#!/usr/bin/env python3
"""
Simple script to run a specific inbox pipeline.
"""

import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

# Add project root to PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.pipeline_orchestrator import run_pipeline, load_pipelines_config
from core.plugin_loader import refresh_registry


async def run_specific_pipeline(config_file: str, pipeline_name: str) -> bool:
    """Run a specific pipeline by name."""
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s"
    )
    logger = logging.getLogger(__name__)

    logger.info("Discovering plugins...")
    refresh_registry()

    pipelines_cfg = load_pipelines_config(config_file)
    if not pipelines_cfg:
        logger.error(f"No pipelines found in {config_file}")
        return False

    target_pipeline = next((p for p in pipelines_cfg if p.get("name") == pipeline_name), None)
    if not target_pipeline:
        logger.error(f"Pipeline '{pipeline_name}' not found in {config_file}")
        available = [p.get("name", "unnamed") for p in pipelines_cfg]
        logger.error(f"Available pipelines: {available}")
        return False

    logger.info(f"Running pipeline: {pipeline_name}")
    ok = await run_pipeline(target_pipeline)
    logger.info("Pipeline execution complete")
    return ok


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python run_pipeline.py <config_file> <pipeline_name>")
        print("Example: python run_pipeline.py pipelines.yml acme_inbox")
        sys.exit(1)

    config_file = sys.argv[1]
    pipeline_name = sys.argv[2]

    sys.exit(0 if asyncio.run(run_specific_pipeline(config_file, pipeline_name)) else 1)

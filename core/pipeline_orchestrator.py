"""
Pipeline orchestrator using the Transform chain pattern.
"""

import logging
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Sequence

import yaml

from .interfaces import Transform
from .plugin_loader import get as load_transform_class

logger = logging.getLogger(__name__)


async def drain(stages: Sequence[Transform]) -> int:
    """Execute a pipeline by connecting transform stages.

    Returns the number of items that made it out of the last stage.
    """

    async def seed() -> AsyncIterator[None]:
        """Seed the pipeline with a single None value."""
        yield None

    stream: AsyncIterator[Any] = seed()
    count = 0

    async with AsyncExitStack() as stack:
        # Enter all stages that support async context management
        for stage in stages:
            if hasattr(stage, "__aenter__"):
                await stack.enter_async_context(stage)

        for stage in stages:
            stream = stage(stream)

        # Sinks handle items; here we only consume the stream
        async for _ in stream:
            count += 1

    return count


def build_stages(cfg: Dict[str, Any]) -> List[Transform]:
    """Instantiate every ``chain`` entry of a pipeline config."""
    instances: List[Transform] = []
    for entry in cfg["chain"]:
        cls = load_transform_class(entry["class"])
        kwargs = entry.get("kwargs") or {}
        instances.append(cls(**kwargs))
    return instances


async def run_pipeline(cfg: Dict[str, Any]) -> bool:
    """Run a single pipeline from configuration. Returns ``True`` on success."""
    pipeline_name = cfg.get("name", "unnamed")

    try:
        logger.info("Starting pipeline: %s", pipeline_name)
        count = await drain(build_stages(cfg))
        logger.info("Pipeline completed: %s (%d items)", pipeline_name, count)
        return True

    except Exception as e:
        logger.error("Pipeline %s failed: %s", pipeline_name, e, exc_info=True)
        return False


async def run_all(pipelines_cfg: List[Dict[str, Any]]) -> List[bool]:
    """Run all pipelines one after another (they share the site's rate limit)."""
    results = []
    for pipeline_cfg in pipelines_cfg:
        results.append(await run_pipeline(pipeline_cfg))
    return results


def load_pipelines_config(config_path: str = "pipelines.yml") -> List[Dict[str, Any]]:
    """Load pipeline configuration from YAML file."""
    path = Path(config_path)

    if not path.exists():
        logger.warning("Pipeline config file not found: %s", config_path)
        return []

    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if "pipelines" not in data:
        logger.error("No 'pipelines' key found in %s", config_path)
        return []

    pipelines = data["pipelines"]

    # Convert dict format to list format
    if isinstance(pipelines, dict):
        result = []
        for name, config in pipelines.items():
            config["name"] = name
            result.append(config)
        return result

    return pipelines

"""Job discovery for the query_builder CLI.

Job modules in this package (and in any package passed to
`discover_package_jobs`) expose a top-level `JOB` variable with the shape
`(entrypoint, description)`, where `entrypoint(argv) -> int`.
"""
from __future__ import annotations

import importlib
import logging
import pkgutil
from typing import Callable, Dict, List, NamedTuple

logger = logging.getLogger(__name__)


class JobDefinition(NamedTuple):
    entrypoint: Callable[[List[str]], int]
    description: str


def discover_package_jobs(package_name: str) -> Dict[str, JobDefinition]:
    """Discover job modules under the given package's `jobs` subpackage.

    Args:
        package_name: Top-level package name (e.g. 'query_builder').

    Returns:
        Mapping of job name -> JobDefinition.
    """
    registry: Dict[str, JobDefinition] = {}
    jobs_package_name = f"{package_name}.jobs"

    try:
        jobs_package = importlib.import_module(jobs_package_name)
    except ImportError:
        logger.debug("No jobs package found for %s", package_name)
        return registry

    for module_info in pkgutil.iter_modules(jobs_package.__path__):
        # iter_modules yields ModuleInfo objects; plain tuples are accepted too
        if isinstance(module_info, tuple) and not hasattr(module_info, "name"):
            _, module_name, is_pkg = module_info
        else:
            module_name = module_info.name
            is_pkg = module_info.ispkg

        if is_pkg or module_name.startswith("_"):
            continue

        full_module_name = f"{jobs_package_name}.{module_name}"
        try:
            module = importlib.import_module(full_module_name)
        except Exception as exc:
            logger.warning("Failed to import job module %s: %s", full_module_name, exc)
            continue

        job_tuple = getattr(module, "JOB", None)
        if job_tuple is None:
            continue
        if not isinstance(job_tuple, tuple) or len(job_tuple) != 2:
            logger.warning(
                "Module %s exports JOB but it's not a 2-tuple (entrypoint, description)",
                full_module_name,
            )
            continue

        entrypoint, description = job_tuple
        if not callable(entrypoint):
            logger.warning("Module %s JOB tuple has non-callable entrypoint", full_module_name)
            continue
        if not isinstance(description, str):
            logger.warning("Module %s JOB tuple has non-string description", full_module_name)
            continue

        registry[module_name] = JobDefinition(entrypoint=entrypoint, description=description)
        logger.debug("Discovered job: %s (%s)", module_name, description)

    return registry

"""
Phase 2 of a submission: querying and parsing the paths between two identifiers.
"""
import asyncio
import logging

from langchain_core.runnables import RunnableConfig

from models.errors import ConnectionSearchError, PathQueryTimeoutError
from models.state import ConnectionState
from pipeline.path_parser import parse_path_results
from pipeline.resolution import record_error
from services.cache_service import path_cache_key

logger = logging.getLogger(__name__)

async def query_path(state: ConnectionState, config: RunnableConfig) -> ConnectionState:
    """
    Fetch raw path blocks, from the cache when possible.

    Args:
        state: State with both identifiers resolved
        config: Runnable config carrying api_client, cache and settings

    Returns:
        Updated state with raw_results, or a path error
    """
    configurable = config["configurable"]
    api_client = configurable["api_client"]
    cache = configurable.get("cache")
    settings = configurable["settings"]
    max_results = settings["max_path_results"]
    timeout = settings["path_query_timeout"]

    first_id = state["first_id"]
    second_id = state["second_id"]
    key = path_cache_key(first_id, second_id)

    cached = cache.get(key) if cache else None
    if cached is not None:
        logger.info(f"Path cache hit for {key}")
        return {
            **state,
            "raw_results": list(cached)[:max_results],
            "from_cache": True
        }

    logger.info(f"Querying paths between {first_id} and {second_id}")
    try:
        results = await asyncio.wait_for(
            api_client.shortest_path(first_id, second_id, max_results),
            timeout=timeout
        )
    except asyncio.TimeoutError:
        logger.warning(f"Path query timed out after {timeout}s")
        return record_error(state, PathQueryTimeoutError(detail=f"Path query exceeded {timeout}s"))
    except ConnectionSearchError as e:
        logger.warning(f"Path query failed: {e.detail}")
        return record_error(state, e)

    results = list(results)[:max_results]
    if cache is not None:
        cache.put(key, results)

    logger.info(f"Path query returned {len(results)} variant(s)")
    return {
        **state,
        "raw_results": results,
        "from_cache": False
    }

def parse_paths(state: ConnectionState) -> ConnectionState:
    """
    Parse raw blocks into chains oriented from the first person.

    Args:
        state: State with raw_results

    Returns:
        Updated state with paths; unparseable variants are None
    """
    paths = parse_path_results(state.get("raw_results", []), state.get("first_id"))
    return {
        **state,
        "paths": paths,
        "metadata": {
            **(state.get("metadata", {})),
            "path_count": sum(1 for p in paths if p is not None),
            "unparsed_count": sum(1 for p in paths if p is None)
        }
    }

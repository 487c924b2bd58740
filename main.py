"""
Main entry point for the connection finder.
"""
import argparse
import asyncio
import logging
from typing import Dict, Any

from config import APP_CONFIG, get_config
from services.search_service import SearchOrchestrator

# Configure logging
logging.basicConfig(
    level=getattr(logging, APP_CONFIG["log_level"].upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

def initialize_system() -> SearchOrchestrator:
    """Initialize the search orchestrator."""
    logger.info("Initializing connection finder")
    config = get_config()

    # Log configuration
    logger.info(f"System configured with: backend={config['api']['base_url']}, "
                f"cache TTL={config['cache']['ttl']}s, Features={config['features']}")

    return SearchOrchestrator()

async def execute_connection(first: str, second: str) -> Dict[str, Any]:
    """
    Find the connection between two people.

    Args:
        first: Name or identifier of the first person
        second: Name or identifier of the second person

    Returns:
        The orchestrator's response dict
    """
    logger.info(f"Executing connection search: '{first}' -> '{second}'")
    orchestrator = initialize_system()
    await orchestrator.start()
    try:
        return await orchestrator.find_connection(first, second)
    finally:
        await orchestrator.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Find the shortest chain of shared titles between two people.")
    parser.add_argument("first", nargs="?", default="Tom Hanks", help="First person (name or nm id)")
    parser.add_argument("second", nargs="?", default="Kevin Bacon", help="Second person (name or nm id)")
    args = parser.parse_args()

    result = asyncio.run(execute_connection(args.first, args.second))

    print(f"\n{result['response']}")
    for idx, chain in enumerate(result["chains"]):
        print(f"Shortest Path #{idx + 1}: {chain}")

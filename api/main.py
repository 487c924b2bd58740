"""
FastAPI implementation exposing the connection search pipeline to a UI.
"""
import logging
from contextlib import asynccontextmanager
from typing import Dict, Any, List, Optional
from fastapi import FastAPI, HTTPException, Depends, Query
from pydantic import BaseModel
import httpx
import uvicorn
import time

from services.search_service import SearchOrchestrator
from services.search_slot import SearchTrigger

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

_orchestrator: Optional[SearchOrchestrator] = None

@asynccontextmanager
async def lifespan(app: FastAPI):
    global _orchestrator
    _orchestrator = SearchOrchestrator()
    await _orchestrator.start()
    yield
    await _orchestrator.close()
    _orchestrator = None

# Initialize FastAPI
app = FastAPI(
    title="Connection Finder API",
    description="Typeahead search and shortest-path lookup between two people",
    version="1.0.0",
    lifespan=lifespan
)

def get_orchestrator() -> SearchOrchestrator:
    if _orchestrator is None:
        raise HTTPException(status_code=503, detail="Search service is not ready")
    return _orchestrator

# API Models
class SuggestionModel(BaseModel):
    id: str
    display_name: str
    photo_url: Optional[str] = None

class SelectionRequest(BaseModel):
    """Confirm a suggestion for one slot."""
    slot: str
    id: str
    display_name: str

class ConnectionRequest(BaseModel):
    """Submit the two inputs. Omitted fields keep the slot's current text and selection."""
    first: Optional[str] = None
    second: Optional[str] = None

class ConnectionResponse(BaseModel):
    response: str
    error: Optional[str] = None
    first_id: Optional[str] = None
    second_id: Optional[str] = None
    from_cache: bool = False
    chains: List[str]
    rendered: List[List[Dict[str, Any]]]

# API Routes
@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Connection Finder API"}

@app.get("/api/suggestions", response_model=List[SuggestionModel])
async def suggestions(
    slot: str = Query(..., pattern="^(first|second)$"),
    q: str = Query("", description="Text typed into the slot"),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator)
):
    """
    Update a slot's text and run its search immediately.

    Args:
        slot: "first" or "second"
        q: Current input text

    Returns:
        The slot's suggestions for this text
    """
    search_slot = orchestrator.slot(slot)
    search_slot.on_input(q)
    search_slot.trigger_search(SearchTrigger.EXPLICIT)
    await search_slot.wait_idle(include_photos=False)
    return [s.model_dump() for s in search_slot.suggestions]

@app.post("/api/selection")
async def select(
    request: SelectionRequest,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator)
):
    """
    Record a confirmed suggestion for a slot.

    Returns:
        The slot's new state
    """
    try:
        search_slot = orchestrator.slot(request.slot)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=str(e))

    match = next((s for s in search_slot.suggestions if s.id == request.id), None)
    if match is None:
        raise HTTPException(status_code=400, detail="Selection must be one of the current suggestions")

    search_slot.select_suggestion(match)
    return {"slot": request.slot, "state": search_slot.state.value, "selected_id": search_slot.selected_id}

@app.post("/api/connection", response_model=ConnectionResponse)
async def connection(
    request: ConnectionRequest,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator)
):
    """
    Resolve both inputs and find the shortest paths between them.

    Returns:
        Connection response; failures carry an error code and one message
    """
    if request.first is not None:
        orchestrator.first.set_text(request.first)
    if request.second is not None:
        orchestrator.second.set_text(request.second)

    start_time = time.time()
    result = await orchestrator.submit()
    logger.info(f"Connection request completed: Time={time.time() - start_time:.2f}s, "
                f"Error={result.get('error')}")

    return {key: value for key, value in result.items() if key != "paths"}

@app.get("/api/health")
async def health_check(orchestrator: SearchOrchestrator = Depends(get_orchestrator)):
    """
    Health check endpoint.

    Returns:
        Pipeline metrics plus the backend's graph build status
    """
    health_metrics = orchestrator.monitor.get_system_health()
    health_metrics["cache_entries"] = len(orchestrator.cache)
    health_metrics["timestamp"] = time.time()

    try:
        health_metrics["backend"] = await orchestrator.api_client.graph_status()
        health_metrics["status"] = "healthy"
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Backend status check failed: {str(e)}")
        health_metrics["backend"] = None
        health_metrics["status"] = "degraded"

    return health_metrics

if __name__ == "__main__":
    # Run the API using Uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

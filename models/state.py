"""
State definitions for the connection search graph.
"""
from typing import Dict, List, Any, Optional, TypedDict

from models.entities import PathChain

class ConnectionState(TypedDict):
    """
    Represents the state of one submission.
    Maintains all information as it flows through resolve -> query -> parse.
    """
    # Raw inputs and any confirmed selections
    first_input: str
    second_input: str
    first_selection_id: Optional[str]
    second_selection_id: Optional[str]

    # Phase 1 output
    first_id: Optional[str]
    second_id: Optional[str]

    # Phase 2 output
    raw_results: List[str]  # Raw text blocks, at most max_path_results
    paths: List[Optional[PathChain]]  # None where a block failed to parse
    from_cache: bool

    # Response and error handling
    response: Optional[str]  # Message to show to the user
    error: Optional[str]  # Error code from models.errors
    error_message: Optional[str]  # User-facing message recorded by the failing node

    # Timing and bookkeeping
    metadata: Dict[str, Any]

def initial_state(first_input: str,
                  second_input: str,
                  first_selection_id: Optional[str] = None,
                  second_selection_id: Optional[str] = None) -> ConnectionState:
    """Build a fresh state for a submission."""
    return ConnectionState(
        first_input=first_input,
        second_input=second_input,
        first_selection_id=first_selection_id,
        second_selection_id=second_selection_id,
        first_id=None,
        second_id=None,
        raw_results=[],
        paths=[],
        from_cache=False,
        response=None,
        error=None,
        error_message=None,
        metadata={}
    )

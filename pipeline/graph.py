"""
Graph structure for the LangGraph connection search pipeline.
"""
import logging
from langgraph.graph import StateGraph, END

from models.state import ConnectionState
from pipeline.resolution import validate_input, resolve_entities
from pipeline.path_query import query_path, parse_paths
from pipeline.response_generation import build_response, handle_error

logger = logging.getLogger(__name__)

def has_error(state: ConnectionState) -> bool:
    return state.get("error") is not None

def build_connection_graph():
    """
    Create the LangGraph for a submission.

    validate_input -> resolve_entities -> query_path -> parse_paths -> build_response,
    with every failing step routed to handle_error. Nodes that talk to the network
    read api_client, cache and settings from config["configurable"].
    """
    graph = StateGraph(ConnectionState)

    # Add all nodes
    graph.add_node("validate_input", validate_input)
    graph.add_node("resolve_entities", resolve_entities)
    graph.add_node("query_path", query_path)
    graph.add_node("parse_paths", parse_paths)
    graph.add_node("build_response", build_response)
    graph.add_node("handle_error", handle_error)

    # Error routing after each step that can fail
    graph.add_conditional_edges(
        "validate_input",
        has_error,
        {True: "handle_error", False: "resolve_entities"}
    )
    graph.add_conditional_edges(
        "resolve_entities",
        has_error,
        {True: "handle_error", False: "query_path"}
    )
    graph.add_conditional_edges(
        "query_path",
        has_error,
        {True: "handle_error", False: "parse_paths"}
    )

    graph.add_edge("parse_paths", "build_response")

    # Endpoints
    graph.add_edge("build_response", END)
    graph.add_edge("handle_error", END)

    # Set entry point
    graph.set_entry_point("validate_input")

    logger.info("Connection search graph built successfully")
    return graph.compile()

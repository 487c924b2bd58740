"""
Error taxonomy for the connection search pipeline.

Every error carries a stable code (stored in the graph state) and a message that
is safe to show to the user. Transport detail stays in the logs.
"""
from typing import Optional

class ConnectionSearchError(Exception):
    """Base class for failures in the search-and-path pipeline."""
    code = "SEARCH_FAILED"
    user_message = "Something went wrong. Please try again."

    def __init__(self, detail: Optional[str] = None, user_message: Optional[str] = None):
        super().__init__(detail or self.user_message)
        self.detail = detail
        if user_message is not None:
            self.user_message = user_message

class InputInvalidError(ConnectionSearchError):
    code = "INPUT_INVALID"
    user_message = "Please enter or choose a person in both fields."

class ResolutionTimeoutError(ConnectionSearchError):
    code = "RESOLUTION_TIMEOUT"
    user_message = "Looking up those names took too long. Please try again."

class ResolutionFailureError(ConnectionSearchError):
    code = "RESOLUTION_FAILURE"
    user_message = "We couldn't find a match for one of those names. Try a different name."

    def __init__(self, name: str, detail: Optional[str] = None):
        super().__init__(
            detail=detail or f"No identifier resolved for {name!r}",
            user_message=f"We couldn't find a match for '{name}'. Try a different name."
        )
        self.name = name

class PathQueryTimeoutError(ConnectionSearchError):
    code = "PATH_QUERY_TIMEOUT"
    user_message = (
        "Search timed out. There is likely no connection between these people. "
        "Try a different pair of names."
    )

class PathServerError(ConnectionSearchError):
    """Non-success answer from the path service, mapped by status code."""
    code = "PATH_SERVER_ERROR"

    NOT_FOUND_MESSAGE = "One or both of these people could not be found."
    NO_PATH_MESSAGE = "No path found between these people."
    GENERIC_MESSAGE = "The path search failed. Please try again."

    def __init__(self, status_code: Optional[int], detail: Optional[str] = None):
        super().__init__(detail=detail, user_message=self.message_for_status(status_code))
        self.status_code = status_code

    @classmethod
    def message_for_status(cls, status_code: Optional[int]) -> str:
        if status_code == 404:
            return cls.NOT_FOUND_MESSAGE
        # 5xx and an explicit error body (status None) both mean the search found nothing
        if status_code is None or status_code >= 500:
            return cls.NO_PATH_MESSAGE
        return cls.GENERIC_MESSAGE

class PathNetworkError(ConnectionSearchError):
    code = "PATH_NETWORK_FAILURE"
    user_message = "Failed to connect to the path service."

class PathParseError(ConnectionSearchError):
    code = "PATH_PARSE_ERROR"
    user_message = "No path found."

ERROR_MESSAGES = {
    cls.code: cls.user_message
    for cls in (
        InputInvalidError,
        ResolutionTimeoutError,
        ResolutionFailureError,
        PathQueryTimeoutError,
        PathNetworkError,
        PathParseError,
    )
}
ERROR_MESSAGES[PathServerError.code] = PathServerError.GENERIC_MESSAGE

"""
Safe exception helpers for the HTTP layer.

Generic messages go out to clients, details stay in the logs.
The dialogue engine never raises for user input; these only cover
lookups and unexpected failures around it (state store, crisis log).
"""
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


class ChatError:
    """HTTPException factories with non-leaky messages."""

    @staticmethod
    def not_found(resource: str = "Resource", reason: str = "") -> HTTPException:
        """
        404 for unknown conversations.

        Example:
            if state is None:
                raise ChatError.not_found("Conversation")
        """
        if reason:
            logger.info(f"Not found: {resource} - {reason}")

        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )

    @staticmethod
    def server_error(original_error: Exception = None) -> HTTPException:
        """
        Generic 500 - logs actual error internally, hides from user.
        """
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {str(original_error)}",
                exc_info=original_error,
            )
        else:
            logger.error("Internal server error occurred", exc_info=True)

        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred. Please try again later.",
        )

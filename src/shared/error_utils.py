from src.shared.errors import ServerError


class ErrorUtils:
    @staticmethod
    def format_error_response(message: str, error_type: str) -> dict:
        """
        Formats a consistent error response dictionary.

        Args:
            message: The error message to include in the response.
            error_type: The type of error (e.g., "illegal_state", "health_check_error").

        Returns:
            A dictionary with the error details.
        """
        return {
            "error": {
                "message": message,
                "type": error_type
            }
        }

    @staticmethod
    def format_server_error(error: ServerError) -> dict:
        """Formats a lifecycle error, including any cleanup failures attached to it."""
        response = ErrorUtils.format_error_response(str(error), error.error_type)
        if error.cleanup_errors:
            response["error"]["cleanup_errors"] = [str(e) for e in error.cleanup_errors]
        return response

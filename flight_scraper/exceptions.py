"""Custom exception classes for the flight scraper"""

import math
from typing import Any, Dict

from .models import ErrorReason


class ScraperError(Exception):
    """
    Base exception for scraper errors.

    Every error carries a stable ``reason`` tag and a message that can be
    shown to the user as-is, suggested next steps included.
    """

    reason = ErrorReason.UNKNOWN

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"reason": self.reason.value, "message": self.message}


class InvalidInputError(ScraperError):
    """Raised when caller-supplied parameters are invalid"""

    reason = ErrorReason.INVALID_INPUT

    def __init__(self, field: str, reason: str):
        self.field = field
        super().__init__(
            f"Invalid input for {field}: {reason}\n\n"
            "Please check:\n"
            "- Airport codes are valid (e.g., JFK, LHR)\n"
            "- Dates are in YYYY-MM-DD format\n"
            "- Return date is provided for round-trip flights\n"
            "- Passenger counts are positive numbers"
        )


class NavigationFailedError(ScraperError):
    """Raised when the fetch completed but the response is unusable"""

    reason = ErrorReason.NAVIGATION_FAILED

    def __init__(self, url: str, details: str):
        self.url = url
        self.details = details
        super().__init__(
            "Failed to fetch flight data from Google Flights.\n"
            f"URL: {url}\n"
            f"Details: {details}\n\n"
            "Possible solutions:\n"
            "- Check your internet connection\n"
            "- Try again in a few moments\n"
            "- Verify the airport codes are correct"
        )


class ScrapeTimeoutError(ScraperError):
    """Raised when connect, response or body read exceeds its deadline"""

    reason = ErrorReason.TIMEOUT

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"Operation timed out: {operation}\n\n"
            "Possible solutions:\n"
            "- The request is taking too long, please try again\n"
            "- Check your network connection\n"
            "- Google Flights may be experiencing issues"
        )


class ParsingError(ScraperError):
    """Raised when markup or token encoding fails structurally"""

    reason = ErrorReason.PARSING_ERROR

    def __init__(self, details: str):
        self.details = details
        super().__init__(
            "Failed to parse flight data from the response.\n"
            f"Details: {details}\n\n"
            "Possible solutions:\n"
            "- Google Flights may have changed their page structure\n"
            "- Try using different airports or dates\n"
            "- Report this issue if it persists"
        )


class RateLimitError(ScraperError):
    """Raised when the local rate limiter denies admission"""

    reason = ErrorReason.RATE_LIMIT_EXCEEDED

    def __init__(self, wait_seconds: float):
        self.wait_seconds = max(0, math.ceil(wait_seconds))
        super().__init__(
            "Rate limit exceeded. Too many requests in a short time.\n"
            f"Please wait {self.wait_seconds} seconds before trying again.\n\n"
            "Note: Google Flights limits the number of requests to prevent abuse."
        )


class UnknownScraperError(ScraperError):
    """Raised for failures that fit no other category"""

    reason = ErrorReason.UNKNOWN

    def __init__(self, error: Any):
        self.error = error
        super().__init__(
            f"An unexpected error occurred: {error}\n\n"
            "Please try again or report this issue if it persists."
        )

"""Custom exceptions for the converter service.

Network-origin failures are absorbed by the services layer; these types
exist so each layer can say precisely what went wrong.
"""


class PesoProError(Exception):
    """Base exception for all converter errors."""


class ProviderError(PesoProError):
    """Raised when a rate provider request fails or returns an unusable payload."""


class RateUnavailable(PesoProError):
    """Raised when no cached rate exists and the live fetch failed."""


class HistoryUnavailable(PesoProError):
    """Raised when the historical series could not be fetched."""


class InvalidInput(PesoProError):
    """Raised when amount text cannot be parsed as a number."""


class InvalidKeyError(PesoProError):
    """Raised when a keypad key other than a digit or decimal point is pressed."""

"""Exceptions shared by the sensor bridge and its consumers."""


class TransportError(Exception):
    """Raised when the physical sensor link cannot be opened or read."""


class InvalidReadingError(ValueError):
    """Raised when a wire message does not carry the three sensor groups."""

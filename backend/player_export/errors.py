"""Exceptions raised by the player export services."""


class PlayerExportError(Exception):
    """Base exception for player export operations."""

    pass


class CampaignNotFound(PlayerExportError):
    """Raised when no campaign entity is available to export."""

    pass


class UnknownExportFormat(PlayerExportError):
    """Raised when an export is requested in a format with no formatter."""

    pass

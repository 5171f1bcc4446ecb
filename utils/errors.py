"""
utils/errors.py — Domain error types.

Every error carries enough detail (offending label or phase, valid range,
allowed targets) for the tool layer to render a precise message. to_dict()
returns the structured form sent back to callers.
"""


class GardenError(Exception):
    """Base class for all caller-facing domain errors."""

    kind = 'garden_error'

    def __init__(self, message, **detail):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self):
        return {'kind': self.kind, 'message': self.message, **self.detail}


class InvalidInput(GardenError):
    """A tool argument failed validation."""
    kind = 'invalid_input'


class InvalidLabel(GardenError):
    """Label does not parse as letters followed by digits."""
    kind = 'invalid_label'


class ColumnOutOfRange(GardenError):
    kind = 'column_out_of_range'


class RowOutOfRange(GardenError):
    kind = 'row_out_of_range'


class InvalidTransition(GardenError):
    """Seedling phase change that would move backwards or leave a terminal phase."""
    kind = 'invalid_transition'


class CatalogUnavailable(GardenError):
    """Schema introspection failed. Recovered locally, never sent to callers."""
    kind = 'catalog_unavailable'


class NotFound(GardenError):
    """Referenced garden, planting or seedling does not exist for this user."""
    kind = 'not_found'

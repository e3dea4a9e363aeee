"""Custom exceptions for the grid performance dashboard service."""


class GridDashboardException(Exception):
    """Base exception for all application errors."""

    pass


class SpreadsheetFormatError(GridDashboardException):
    """No header row could be identified in the uploaded spreadsheet."""

    pass


class WorkbookReadError(GridDashboardException):
    """Spreadsheet bytes could not be opened as a workbook."""

    pass


class DatasetFetchError(GridDashboardException):
    """Failed to download the initial dataset."""

    pass


class ReportExportError(GridDashboardException):
    """PDF report could not be rendered."""

    pass


class ConfigurationError(GridDashboardException):
    """Configuration error."""

    pass


class DatasetPersistError(GridDashboardException):
    """Dataset snapshot could not be written to disk."""

    pass

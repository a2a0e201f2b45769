"""marcify: OverDrive SpreadsheetML metadata -> MARC 21 records."""

__version__ = "0.3.0"

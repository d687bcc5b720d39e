"""Material purchase price import: reconcile spreadsheet rows into the price master."""

__version__ = "0.1.0"

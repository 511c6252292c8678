"""projstat: project status views over publicly shared Google Sheets."""

__version__ = "0.1.0"

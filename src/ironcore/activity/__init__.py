"""Activity collaborators."""

from .sources import ActivityExport, ActivitySource, JsonActivitySource

__all__ = [
    "ActivityExport",
    "ActivitySource",
    "JsonActivitySource",
]

from .config import AppConfig
from .errors import AnalysisError, FeedError, FormValidationError, GeolocationError, SyncWarning
from .models import AnalysisResult, DamageLevel, HierarchyRow, Report
from .severity import map_severity

__all__ = [
    "AppConfig",
    "DamageLevel",
    "Report",
    "HierarchyRow",
    "AnalysisResult",
    "map_severity",
    "FeedError",
    "GeolocationError",
    "SyncWarning",
    "FormValidationError",
    "AnalysisError",
]

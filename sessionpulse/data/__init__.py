"""
SessionPulse data layer: runtime settings and review loading.
"""

from .config import Settings, get_settings, reset_settings
from .review_loader import LoadResult, load_reviews, parse_records

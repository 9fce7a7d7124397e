"""
Profile catalog and resolution engine.
"""

from k8s_launch_kit.profiles.catalog import DEFAULT_CATALOG_DIR, ProfileCatalog
from k8s_launch_kit.profiles.resolve import first_mismatch, profile_matches, resolve_profile

__all__ = [
    "DEFAULT_CATALOG_DIR",
    "ProfileCatalog",
    "first_mismatch",
    "profile_matches",
    "resolve_profile",
]

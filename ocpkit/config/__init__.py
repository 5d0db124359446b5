"""
ocpkit - Configuration Module
=============================

Zentrale Konfiguration für Toleranzen und Feature-Flags.
"""

from .tolerances import Tolerances, kernel_tolerance, tessellation_quality, tessellation_angular
from .feature_flags import is_enabled, set_flag, get_all_flags, FEATURE_FLAGS
from .version import VERSION, VERSION_STRING, APP_NAME

"""
Field Service Manager - Backend Services
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): Counter service and job lifecycle split out
v1.0.0 (2026-10-05): Initial services module
"""

from . import errors
from . import parts_list
from . import directory
from . import counter_service
from . import job_lifecycle
from . import job_service

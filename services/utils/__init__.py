"""
Utility services for bowl image analysis.

Utilities:
- DebugContext: Visual logging and step tracking
- LightingCheckService: Pre-capture brightness check
- severity_legend: Severity ranking, legend and result summaries
"""

from services.utils.debug import DebugContext
from services.utils.lighting_check import LightingCheckService

__all__ = [
    'DebugContext',
    'LightingCheckService'
]

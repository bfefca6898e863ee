"""
Corridor Positioning Examples

End-to-end demonstrations of the floorpos pipeline on a simulated
corridor: survey, polynomial calibration per access point, signal map
building and position search.

Author: Navigation Engineer
Date: 2026
"""

__version__ = "0.1.0"
__all__ = []

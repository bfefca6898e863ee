"""Core modules for corridor positioning from WiFi signal strength.

This package contains the reusable components of the floorpos project:
- regression: Streaming polynomial regression (moment matrix + Cramer's rule)
- fingerprinting: Signal maps built from per-emitter fits and position search
"""

__version__ = "0.1.0"

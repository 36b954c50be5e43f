"""
ZMU - Mod Utility Library.

This package contains the shared runtime pieces used by mods:
- Config: typed, validated settings with file persistence and host/remote sync.
- Timers: minute-based callbacks driven by the tick scheduler.
- Logger: named, leveled loggers backed by loguru.
"""

__version__ = "1.0.0"

"""Workstation Installer (idempotent, re-runnable Debian workstation setup).

Core design goals:
- Probe before acting; a second run changes nothing
- Back up every file before it is modified
- Bounded, fixed-delay retries for flaky network actions
- Single-run lock and a progress record for diagnosis
- Centralized logging
"""

__version__ = "0.1.0"

__all__ = ["__version__"]

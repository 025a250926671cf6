"""
Shared Config Module
====================

Packaged configuration files.

Structure:
- settings/defaults.yaml: system defaults (lowest precedence tier)
"""

from pathlib import Path

SETTINGS_DIR = Path(__file__).parent / "settings"

__all__ = ["SETTINGS_DIR"]

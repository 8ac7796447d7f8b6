"""trunk-release: semantic releases for trunk-based development."""

from __future__ import annotations

__version__ = "0.1.0"

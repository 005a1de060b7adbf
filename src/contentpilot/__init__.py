"""ContentPilot: turn model replies into content-store actions and keep live previews consistent."""

from __future__ import annotations

__version__ = "0.1.0"

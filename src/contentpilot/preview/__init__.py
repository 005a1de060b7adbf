"""Live preview state."""

from __future__ import annotations

from contentpilot.preview.reconciler import SectionView, UpdateKind, classify_update, reconcile_sections

__all__ = ["SectionView", "UpdateKind", "classify_update", "reconcile_sections"]

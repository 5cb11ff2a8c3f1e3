"""Viewer-side reconciliation: mirror, derived views and the death overlay."""

from .mirror import ClientMirror, Views, derive_views, rank_by_kills
from .overlay import DeathOverlay

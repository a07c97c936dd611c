"""Best-tier selection by recorded training loss."""

from typing import Any, Optional

from shared_types import ModelTier

from .registry import ModelRegistry


def select_model(registry: ModelRegistry, history_len: int) -> Optional[tuple[ModelTier, Any]]:
    """Lowest-loss trained tier whose threshold is met, or None.

    Ties go to the earlier tier in ModelTier order.
    """
    best = None
    with registry.lock:
        for tier in registry.eligible_tiers(history_len):
            state = registry[tier]
            if state.trained_model is None:
                continue
            if best is None or state.last_loss < best.last_loss:
                best = state
        if best is None:
            return None
        return best.tier, best.trained_model

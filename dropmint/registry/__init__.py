"""
dropmint Stage Registry

Administrative configuration of a drop: stages, allow-list root,
signer bounds, allowed sets and creator payouts.
"""

from dropmint.registry.stage_registry import MAX_PUBLIC_STAGE_INDEX, StageRegistry

__all__ = ["StageRegistry", "MAX_PUBLIC_STAGE_INDEX"]

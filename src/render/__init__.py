"""Render module for finance engine output display."""

from render.renderers import (
    BaseRenderer,
    LiabilityRenderer,
    VestCalendarRenderer,
    GrowthRenderer,
    FeesRenderer,
    HomebuyerRenderer,
    MedicareRenderer,
    RothRenderer,
    HsaRenderer,
    RENDERER_REGISTRY,
)

__all__ = [
    'BaseRenderer',
    'LiabilityRenderer',
    'VestCalendarRenderer',
    'GrowthRenderer',
    'FeesRenderer',
    'HomebuyerRenderer',
    'MedicareRenderer',
    'RothRenderer',
    'HsaRenderer',
    'RENDERER_REGISTRY',
]

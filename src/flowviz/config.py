"""Centralized configuration for flowviz."""

from __future__ import annotations

from dataclasses import dataclass

# ─── Node dimensions ─────────────────────────────────────────────────────────

NODE_WIDTH: int = 240
NODE_HEIGHT: int = 56
START_NODE_WIDTH: int = 280
START_NODE_TRIGGER_HEIGHT: int = 140
END_NODE_HEIGHT: int = 40
CARD_NODE_WIDTH: int = 285


@dataclass
class LayoutConfig:
    """Geometry used by the tree layout engine (pixels)."""

    node_width: int = NODE_WIDTH
    node_height: int = NODE_HEIGHT
    h_gap: int = 60
    v_gap: int = 70
    start_x: int = 800
    start_y: int = 80
    fault_lane_clearance: int = 80
    fault_lane_spacing: int = 40
    orphan_offset_x: int = 400
    branching_start_extra_gap: int = 30

    @property
    def col_width(self) -> int:
        return self.node_width + self.h_gap

    @property
    def row_height(self) -> int:
        return self.node_height + self.v_gap


DEFAULT_LAYOUT_CONFIG = LayoutConfig()
CARD_LAYOUT_CONFIG = LayoutConfig(node_width=CARD_NODE_WIDTH)

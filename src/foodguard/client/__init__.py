"""Client side of the analysis stream."""

from __future__ import annotations

from foodguard.client.dashboard import DashboardClient, DashboardClientError, RunInProgressError
from foodguard.client.reassembler import FrameDecoder, Reassembler, UIState, replay

__all__ = [
    "DashboardClient",
    "DashboardClientError",
    "FrameDecoder",
    "Reassembler",
    "RunInProgressError",
    "UIState",
    "replay",
]

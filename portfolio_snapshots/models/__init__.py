from portfolio_snapshots.models.position import Position, PositionStatus, Dividend
from portfolio_snapshots.models.snapshot import Snapshot, SnapshotPosition, SnapshotStatus
from portfolio_snapshots.models.setting import Setting

__all__ = [
    "Position",
    "PositionStatus",
    "Dividend",
    "Snapshot",
    "SnapshotPosition",
    "SnapshotStatus",
    "Setting",
]

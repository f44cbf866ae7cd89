from portfolio_snapshots.schemas.position import (
    PositionResponse,
    PositionCreate,
    PositionUpdate,
    PositionDeleteResponse,
)
from portfolio_snapshots.schemas.snapshot import (
    SnapshotResponse,
    SnapshotCreate,
    SnapshotUpdate,
    SnapshotCreateResponse,
    SnapshotPositionResponse,
    SnapshotSummaryResponse,
    SnapshotStatsResponse,
    SnapshotDetailResponse,
    FetchPricesResponse,
    PopulateDividendsResponse,
)
from portfolio_snapshots.schemas.settings import UserPreferences

__all__ = [
    "PositionResponse",
    "PositionCreate",
    "PositionUpdate",
    "PositionDeleteResponse",
    "SnapshotResponse",
    "SnapshotCreate",
    "SnapshotUpdate",
    "SnapshotCreateResponse",
    "SnapshotPositionResponse",
    "SnapshotSummaryResponse",
    "SnapshotStatsResponse",
    "SnapshotDetailResponse",
    "FetchPricesResponse",
    "PopulateDividendsResponse",
    "UserPreferences",
]

from portfolio_snapshots.routers.positions import router as positions_router
from portfolio_snapshots.routers.snapshots import router as snapshots_router
from portfolio_snapshots.routers.settings import router as settings_router

__all__ = ["positions_router", "snapshots_router", "settings_router"]

import logging
import time

import psutil
from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from coachlink.auth.utils import require_coach
from coachlink.db.models import User
from coachlink.db.session import engine, get_session
from coachlink.db.storage import Storage
from .models import DatabaseStatus, HealthResponse, MemoryStats
from .monitor import monitor

logger = logging.getLogger("health")

router = APIRouter(tags=["health"])


def _pool_stat(name: str) -> int:
    # StaticPool/NullPool do not track checkouts.
    stat = getattr(engine.pool, name, None)
    return stat() if callable(stat) else 0


def _active_sessions(db: Session) -> int:
    try:
        return Storage(db).count_active_sessions()
    except SQLAlchemyError as e:
        logger.error(f"Error getting session count: {e}")
        db.rollback()
        return 0


@router.get("", response_model=HealthResponse)
def get_health(
    db: Session = Depends(get_session),
    current_user: User = Depends(require_coach),
):
    """Process and store health snapshot. Coaches only."""
    active_sessions = _active_sessions(db)

    process = psutil.Process()
    memory = psutil.virtual_memory()
    checked_out = _pool_stat("checkedout")
    idle = _pool_stat("checkedin")
    snapshot = monitor.snapshot()

    return HealthResponse(
        uptime=time.time() - process.create_time(),
        memory=MemoryStats(
            total=memory.total,
            free=memory.available,
            used=memory.total - memory.available,
            usage_percent=memory.percent,
            process_rss=process.memory_info().rss,
        ),
        active_sessions=active_sessions,
        database_status=DatabaseStatus(
            is_connected=checked_out + idle > 0,
            connection_count=checked_out + idle,
            idle_connections=idle,
        ),
        last_minute_requests=snapshot.window_requests,
        error_rate=snapshot.error_rate,
        total_requests=snapshot.total_requests,
    )

from pydantic import BaseModel


class MemoryStats(BaseModel):
    total: int
    free: int
    used: int
    usage_percent: float
    process_rss: int


class DatabaseStatus(BaseModel):
    is_connected: bool
    connection_count: int
    idle_connections: int


class HealthResponse(BaseModel):
    uptime: float
    memory: MemoryStats
    active_sessions: int
    database_status: DatabaseStatus
    last_minute_requests: int
    error_rate: float
    total_requests: int

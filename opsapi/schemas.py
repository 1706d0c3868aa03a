from typing import Dict, List, Optional
from pydantic import BaseModel

class TaskStatusOut(BaseModel):
    """Scheduled pass status schema."""
    name: str
    interval_s: float
    running: bool
    runs: int
    failures: int
    skipped: int
    last_started_ms: Optional[int] = None
    last_duration_ms: Optional[float] = None
    last_error: Optional[str] = None

class RunResponse(BaseModel):
    """Manual pass trigger response schema."""
    task: str
    ran: bool
    events: int

class HealthResponse(BaseModel):
    status: str
    uptime_s: float
    entities: Dict[str, int]
    dedup_keys: Dict[str, int]

class EventsResponse(BaseModel):
    """Events response schema."""
    next_offset: int
    events: List[dict]

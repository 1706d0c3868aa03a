import logging
import time
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, HTTPException, Request
from scheduler.bootstrap import Runtime, build_runtime
from scheduler.config import settings
from .schemas import EventsResponse, HealthResponse, RunResponse, TaskStatusOut

logger = logging.getLogger("opsapi")

def _runtime(request: Request) -> Runtime:
    return request.app.state.runtime

def create_app(runtime: Optional[Runtime] = None, start_scheduler: bool = True) -> FastAPI:
    """Create the ops API around a runtime (built from settings when not given)."""
    runtime = runtime or build_runtime(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.started_at = time.time()
        if start_scheduler:
            await runtime.scheduler.start()
        yield
        await runtime.scheduler.stop()

    app = FastAPI(title="Hazard Simulation Ops API", lifespan=lifespan)
    app.state.runtime = runtime
    app.state.started_at = time.time()

    @app.get("/")
    async def root():
        """API root endpoint."""
        return {"message": "Hazard Simulation Ops API", "docs": "/docs", "version": "1.0"}

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request):
        rt = _runtime(request)
        return HealthResponse(
            status="ok",
            uptime_s=time.time() - request.app.state.started_at,
            entities=rt.store.counts(),
            dedup_keys={"proximity": len(rt.proximity.notified),
                        "damage_missile": len(rt.damage.missile_hits),
                        "damage_landmine": len(rt.damage.landmine_hits)},
        )

    @app.get("/tasks", response_model=list[TaskStatusOut])
    async def list_tasks(request: Request):
        """Status of every scheduled pass."""
        tasks = _runtime(request).scheduler.tasks.values()
        return [TaskStatusOut(running=t.running, **vars(t.status)) for t in tasks]

    @app.post("/tasks/{name}/run", response_model=RunResponse)
    async def run_task(name: str, request: Request):
        """Run one pass immediately."""
        scheduler = _runtime(request).scheduler
        if name not in scheduler.tasks:
            raise HTTPException(404, f"Unknown task {name}")
        evts = await scheduler.run(name)
        logger.info("[API] Manual run of %s: %s", name, "skipped/failed" if evts is None else len(evts))
        return RunResponse(task=name, ran=evts is not None, events=len(evts or []))

    @app.get("/events", response_model=EventsResponse)
    async def get_events(request: Request, since: int = 0, limit: int = 500):
        """Get events since offset."""
        evts, next_offset = _runtime(request).events.since(since, limit)
        return EventsResponse(
            next_offset=next_offset,
            events=[{"kind": e.kind, "ts_ms": e.ts_ms, "data": e.data} for e in evts]
        )

    return app

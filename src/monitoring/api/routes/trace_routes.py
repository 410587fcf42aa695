from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from src.dependencies import get_tracing_service
from src.monitoring.api.schemas import TraceResponse
from src.monitoring.application.tracing_service import TracingService
from src.shared.auth import require_system_admin

router = APIRouter(
    prefix="/api/v1/admin/traces",
    tags=["Console:Tracing"],
    dependencies=[Depends(require_system_admin)],
)

Tracing = Annotated[TracingService, Depends(get_tracing_service)]


@router.get("/{trace_id}", response_model=TraceResponse, summary="Exported spans of a trace")
async def show_trace(trace_id: str, tracing: Tracing):
    spans = await tracing.get_trace(trace_id)
    return {"trace_id": trace_id, "spans": spans}

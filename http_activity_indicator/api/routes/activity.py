"""
活动指示器路由模块：
- 查询当前在途请求数与指示器可见性。
- 以 SSE 推送可见性变化。
- 强制显示/隐藏指示器。
- 查询与替换过滤器、时间参数。
"""

import json
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from ...core.types import IndicatorTimings
from ...services.activity_tracker import ActivityTracker
from ...services.debouncer import VisibilityDebouncer
from ...services.filters import FilterSet
from ...services.visibility import VisibilityService
from ..dependencies import get_activity_tracker, get_visibility_debouncer, get_visibility_service
from ..models import ActivityStatus, FiltersPayload, TimingsPayload, VisibilityRequest
from ..security import verify_api_key

router = APIRouter(
    prefix="/activity",
    tags=["Activity"],
)

@router.get("", response_model=ActivityStatus)
async def get_activity_status(
    tracker: ActivityTracker = Depends(get_activity_tracker),
    debouncer: VisibilityDebouncer = Depends(get_visibility_debouncer),
):
    """返回当前计数与可见性快照。"""
    return ActivityStatus(
        pending_requests=tracker.pending_count,
        busy=tracker.is_busy,
        visible=debouncer.is_visible,
        state=debouncer.state.value,
        remaining_visible_ms=debouncer.remaining_visible_ms(),
    )

@router.get("/stream")
async def stream_visibility(debouncer: VisibilityDebouncer = Depends(get_visibility_debouncer)):
    """以 text/event-stream 推送可见性变化，连接建立时先推送当前值。"""
    async def event_stream():
        async for visible in debouncer.visibility.stream():
            yield f"data: {json.dumps({'visible': visible})}\n\n"

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream; charset=utf-8",
        headers={"Cache-Control": "no-cache"},
    )

@router.post("/visibility", response_model=ActivityStatus, dependencies=[Depends(verify_api_key)])
async def force_visibility(
    payload: VisibilityRequest,
    tracker: ActivityTracker = Depends(get_activity_tracker),
    visibility_service: VisibilityService = Depends(get_visibility_service),
    debouncer: VisibilityDebouncer = Depends(get_visibility_debouncer),
):
    """强制显示或隐藏指示器。"""
    visibility_service.set(payload.visible)
    return await get_activity_status(tracker, debouncer)

@router.get("/filters", response_model=FiltersPayload)
async def get_filters(tracker: ActivityTracker = Depends(get_activity_tracker)):
    return FiltersPayload(**tracker.filters.to_dict())

@router.put("/filters", response_model=FiltersPayload, dependencies=[Depends(verify_api_key)])
async def replace_filters(
    payload: FiltersPayload,
    tracker: ActivityTracker = Depends(get_activity_tracker),
):
    """用新的过滤器快照替换当前过滤器。只影响之后开始的请求。"""
    try:
        filters = FilterSet.from_patterns(
            methods=payload.methods,
            headers=payload.headers,
            url_patterns=payload.url_patterns,
            included_url_patterns=payload.included_url_patterns,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    tracker.set_filters(filters)
    return FiltersPayload(**filters.to_dict())

@router.get("/timings", response_model=TimingsPayload)
async def get_timings(debouncer: VisibilityDebouncer = Depends(get_visibility_debouncer)):
    timings = debouncer.timings
    return TimingsPayload(
        debounce_delay_ms=timings.debounce_delay,
        min_duration_ms=timings.min_duration,
        extra_duration_ms=timings.extra_duration,
    )

@router.put("/timings", response_model=TimingsPayload, dependencies=[Depends(verify_api_key)])
async def replace_timings(
    payload: TimingsPayload,
    debouncer: VisibilityDebouncer = Depends(get_visibility_debouncer),
):
    """替换去抖器的时间参数。已经在运行的定时器不受影响。"""
    debouncer.update_timings(IndicatorTimings(
        debounce_delay=payload.debounce_delay_ms,
        min_duration=payload.min_duration_ms,
        extra_duration=payload.extra_duration_ms,
    ))
    return payload

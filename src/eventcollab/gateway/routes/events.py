"""事件路由

GET  /api/events/conflicts/{user_id}: 冲突事件查询（只读）
POST /api/events/merge-all/{user_id}: 合并用户所有重叠事件
GET  /api/events/user/{user_id}: 用户事件列表
POST /api/events/batch: 批量创建事件
"""

from eventcollab.core.config import BATCH_MAX_EVENTS
from eventcollab.core.exceptions import (
    EventValidationError,
    StoreTransactionError,
    UserNotFoundError,
)
from eventcollab.core.models import Event, EventCreate
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from ..deps import get_event_service
from ..services.event_service import EventService

router = APIRouter()


class EventView(BaseModel):
    """事件响应体"""

    event_id: str
    title: str
    description: str | None
    status: str
    start_time: str
    end_time: str
    invitee_ids: list[str]
    merged_from: list[str]
    summary: str | None
    created_at: str
    updated_at: str

    @classmethod
    def from_event(cls, event: Event) -> "EventView":
        return cls(
            event_id=event.event_id,
            title=event.title,
            description=event.description,
            status=event.status.value,
            start_time=event.start_time.isoformat(),
            end_time=event.end_time.isoformat(),
            invitee_ids=event.invitee_ids,
            merged_from=event.merged_from,
            summary=event.summary,
            created_at=event.created_at.isoformat(),
            updated_at=event.updated_at.isoformat(),
        )


class EventListResponse(BaseModel):
    events: list[EventView]


class EventCountResponse(BaseModel):
    """合并 / 批量创建响应"""

    count: int
    events: list[EventView]


class BatchCreateRequest(BaseModel):
    """批量创建请求"""

    events: list[EventCreate] = Field(description=f"待创建事件，至多 {BATCH_MAX_EVENTS} 条")
    user_id: str | None = Field(default=None, description="发起批量创建的用户（写入审计）")


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


def _map_error(exc: Exception) -> JSONResponse:
    if isinstance(exc, UserNotFoundError):
        return _error_response(404, "USER_NOT_FOUND", str(exc))
    if isinstance(exc, EventValidationError):
        return _error_response(400, "EVENT_VALIDATION_FAILED", str(exc))
    return _error_response(500, "STORE_TRANSACTION_FAILED", str(exc))


@router.get("/api/events/conflicts/{user_id}", response_model=EventListResponse)
async def find_conflicts(
    user_id: str,
    service: EventService = Depends(get_event_service),
):
    """查询用户冲突事件"""
    try:
        events = await service.find_conflicts(user_id)
    except UserNotFoundError as e:
        return _map_error(e)

    return EventListResponse(events=[EventView.from_event(e) for e in events])


@router.post("/api/events/merge-all/{user_id}", response_model=EventCountResponse)
async def merge_all(
    user_id: str,
    service: EventService = Depends(get_event_service),
):
    """合并用户所有重叠事件，返回新生成的合并事件"""
    try:
        merged = await service.merge_all(user_id)
    except (UserNotFoundError, EventValidationError, StoreTransactionError) as e:
        return _map_error(e)

    return EventCountResponse(
        count=len(merged),
        events=[EventView.from_event(e) for e in merged],
    )


@router.get("/api/events/user/{user_id}", response_model=EventListResponse)
async def list_user_events(
    user_id: str,
    service: EventService = Depends(get_event_service),
):
    """查询用户参与的事件，按开始时间排序"""
    try:
        events = await service.list_user_events(user_id)
    except UserNotFoundError as e:
        return _map_error(e)

    return EventListResponse(events=[EventView.from_event(e) for e in events])


@router.post("/api/events/batch", status_code=201, response_model=EventCountResponse)
async def batch_create(
    body: BatchCreateRequest,
    service: EventService = Depends(get_event_service),
):
    """单事务批量创建事件"""
    try:
        events = await service.batch_create(body.events, user_id=body.user_id)
    except (EventValidationError, StoreTransactionError) as e:
        return _map_error(e)

    return EventCountResponse(
        count=len(events),
        events=[EventView.from_event(e) for e in events],
    )

from pydantic import BaseModel
from typing import List, Optional


class BlockedDateCreate(BaseModel):
    date: str
    reason: Optional[str] = None


class ShowingWindowIn(BaseModel):
    dayOfWeek: int
    startTime: str
    endTime: str
    enabled: bool = True


class ShowingConfigIn(BaseModel):
    defaultDurationMinutes: int
    maxSlotsPerWindow: int


class ShowingAvailabilityUpdate(BaseModel):
    availability: Optional[List[ShowingWindowIn]] = None
    config: Optional[ShowingConfigIn] = None


def window_to_dict(w) -> dict:
    return {
        "id": w.id,
        "dayOfWeek": w.day_of_week,
        "startTime": w.start_time,
        "endTime": w.end_time,
        "enabled": w.enabled,
    }


def config_to_dict(c) -> dict | None:
    if c is None:
        return None
    return {
        "key": c.key,
        "defaultDurationMinutes": c.default_duration_minutes,
        "maxSlotsPerWindow": c.max_slots_per_window,
    }


def blocked_to_dict(b) -> dict:
    return {"id": b.id, "date": b.date.isoformat(), "reason": b.reason}

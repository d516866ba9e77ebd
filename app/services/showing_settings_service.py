import uuid
from dataclasses import dataclass
from sqlalchemy.orm import Session
from app.core.errors import ValidationError
from app.models.showing import ShowingAvailability, ShowingConfig, ShowingConfigKey, UNLIMITED_SLOTS
from app.services.calendar_service import minutes_of, parse_clock_time

DEFAULT_DURATION_MINUTES = 30
# Thursday 15:00-18:00
DEFAULT_WINDOW = {"day_of_week": 4, "start_time": "15:00", "end_time": "18:00"}


@dataclass(frozen=True)
class ShowingSettings:
    default_duration_minutes: int
    max_slots_per_window: int

    @property
    def slot_cap(self) -> int | None:
        """Per-slot cap, or None when unlimited."""
        if self.max_slots_per_window < UNLIMITED_SLOTS:
            return self.max_slots_per_window
        return None


def get_showing_config(db: Session, key: ShowingConfigKey = ShowingConfigKey.DEFAULT) -> ShowingConfig | None:
    return db.query(ShowingConfig).filter(ShowingConfig.key == key.value).first()


def ensure_showing_config(db: Session, key: ShowingConfigKey = ShowingConfigKey.DEFAULT) -> ShowingConfig:
    cfg = get_showing_config(db, key)
    if cfg:
        return cfg
    cfg = ShowingConfig(
        id=str(uuid.uuid4()),
        key=key.value,
        default_duration_minutes=DEFAULT_DURATION_MINUTES,
        max_slots_per_window=UNLIMITED_SLOTS,
    )
    db.add(cfg)
    db.commit()
    return cfg


def get_showing_settings(db: Session) -> ShowingSettings | None:
    """Load the default config once into an immutable value; None if it was never created."""
    cfg = get_showing_config(db)
    if not cfg:
        return None
    return ShowingSettings(
        default_duration_minutes=int(cfg.default_duration_minutes),
        max_slots_per_window=int(cfg.max_slots_per_window),
    )


def list_windows(db: Session, day_of_week: int | None = None, enabled_only: bool = False) -> list[ShowingAvailability]:
    q = db.query(ShowingAvailability)
    if day_of_week is not None:
        q = q.filter(ShowingAvailability.day_of_week == day_of_week)
    if enabled_only:
        q = q.filter(ShowingAvailability.enabled == True)  # noqa: E712
    return q.order_by(ShowingAvailability.day_of_week.asc(), ShowingAvailability.start_time.asc()).all()


def _validate_window(item: dict) -> dict:
    dow = item.get("day_of_week")
    if isinstance(dow, bool) or not isinstance(dow, int) or not 0 <= dow <= 6:
        raise ValidationError("dayOfWeek must be between 0 (Sunday) and 6 (Saturday).")
    start, end = item.get("start_time") or "", item.get("end_time") or ""
    sh, sm = parse_clock_time(start, message="Invalid window start time. Use HH:MM.")
    eh, em = parse_clock_time(end, allow_midnight_end=True, message="Invalid window end time. Use HH:MM.")
    if minutes_of(end) <= minutes_of(start):
        raise ValidationError("Window end time must be after start time.")
    return {
        "day_of_week": dow,
        "start_time": f"{sh:02d}:{sm:02d}",
        "end_time": f"{eh:02d}:{em:02d}",
        "enabled": bool(item.get("enabled", True)),
    }


def update_showing_availability(db: Session, windows: list[dict] | None, config: dict | None) -> tuple[list[ShowingAvailability], ShowingConfig | None]:
    """Upsert the default config and, when given, replace the whole weekly window set."""
    if config is not None:
        duration = config.get("default_duration_minutes")
        max_slots = config.get("max_slots_per_window")
        if not isinstance(duration, int) or duration <= 0:
            raise ValidationError("defaultDurationMinutes must be a positive integer.")
        if not isinstance(max_slots, int) or max_slots <= 0:
            raise ValidationError("maxSlotsPerWindow must be a positive integer.")
        cfg = get_showing_config(db)
        if not cfg:
            cfg = ShowingConfig(id=str(uuid.uuid4()), key=ShowingConfigKey.DEFAULT.value)
            db.add(cfg)
        cfg.default_duration_minutes = duration
        cfg.max_slots_per_window = max_slots

    if windows is not None:
        cleaned = [_validate_window(w) for w in windows]
        seen = set()
        for w in cleaned:
            k = (w["day_of_week"], w["start_time"], w["end_time"])
            if k in seen:
                raise ValidationError("Duplicate availability window.")
            seen.add(k)
        db.query(ShowingAvailability).delete(synchronize_session=False)
        for w in cleaned:
            db.add(ShowingAvailability(id=str(uuid.uuid4()), **w))

    db.commit()
    return list_windows(db), get_showing_config(db)


def initialize_showing_defaults(db: Session) -> None:
    """Create the default config and, if no windows exist, the Thursday afternoon window."""
    ensure_showing_config(db)
    if db.query(ShowingAvailability).count() == 0:
        db.add(ShowingAvailability(id=str(uuid.uuid4()), enabled=True, **DEFAULT_WINDOW))
        db.commit()

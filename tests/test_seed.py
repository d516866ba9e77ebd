from app.db.session import SessionLocal
from app.models.addon import AddOn
from app.models.showing import ShowingAvailability, ShowingConfig
from app.models.user import User
from app.seed import run


def test_seed_is_idempotent(db):
    run(SessionLocal())
    run(SessionLocal())

    admin = db.query(User).filter(User.email == "admin@venue.local").one()
    assert admin.role == "admin"
    assert db.query(ShowingConfig).count() == 1
    windows = db.query(ShowingAvailability).all()
    assert [(w.day_of_week, w.start_time, w.end_time) for w in windows] == [(4, "15:00", "18:00")]
    assert [a.name for a in db.query(AddOn).all()] == ["Whicker Chair"]

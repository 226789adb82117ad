from hostel_engine.tasks.celery_app import SEMESTER_TASK, SWEEP_TASK, create_celery_app, get_resources
from hostel_engine.tasks.resources import EngineResources
from tests.conftest import FIXED_NOW, RecordingNotificationDispatcher, make_settings, minutes_before


def test_beat_schedule():
    app = create_celery_app(make_settings(SEMESTER_CHECK_HOUR_UTC=6))

    schedule = app.conf.beat_schedule
    assert schedule["sweep-expired-bookings"]["task"] == SWEEP_TASK
    assert schedule["sweep-expired-bookings"]["schedule"].minute == {0, 15, 30, 45}
    assert schedule["semester-transitions"]["task"] == SEMESTER_TASK
    assert schedule["semester-transitions"]["schedule"].hour == {6}
    assert schedule["semester-transitions"]["schedule"].minute == {0}
    assert app.conf.timezone == "UTC"


def test_resources_are_attached_to_the_app(database, settings, seed, hostel_id):
    app = create_celery_app(settings)
    app.engine_resources = EngineResources(settings, database, RecordingNotificationDispatcher())
    seed.booking(hostel_id, minutes_before(90))

    resources = get_resources(app)
    report = resources.booking_expiry.sweep(now=FIXED_NOW)

    assert resources is app.engine_resources
    assert report.expired_bookings == 1

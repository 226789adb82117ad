from tests.conftest import make_settings


def test_allowed_roles_from_comma_separated_string():
    settings = make_settings(REGISTRATION_ALLOWED_ROLES="custodian, hostel_admin")

    assert settings.REGISTRATION_ALLOWED_ROLES == ["custodian", "hostel_admin"]


def test_allowed_roles_from_json_list():
    settings = make_settings(REGISTRATION_ALLOWED_ROLES='["super_admin"]')

    assert settings.REGISTRATION_ALLOWED_ROLES == ["super_admin"]


def test_database_url_from_components():
    settings = make_settings(DATABASE_URL=None, DB_USER="hostel", DB_PASSWORD="pw", DB_HOST="db", DB_NAME="portal")

    assert settings.get_database_url() == "postgresql://hostel:pw@db:5432/portal"


def test_broker_falls_back_to_redis():
    settings = make_settings(REDIS_URL="redis://cache:6379/1")

    assert settings.get_broker_url() == "redis://cache:6379/1"
    assert settings.get_result_backend() == "redis://cache:6379/1"


def test_scheduler_defaults():
    settings = make_settings()

    assert settings.BOOKING_EXPIRY_MINUTES == 30
    assert settings.SEMESTER_CHECK_HOUR_UTC == 8
    assert settings.SEMESTER_REMINDER_LOOKAHEAD_DAYS == 7

import os

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from backend.main import app, root  # noqa: E402


def test_root_reports_running_status() -> None:
    assert root() == {'status': 'Clinic Scheduling API Running'}


def test_app_exposes_entity_and_health_routes() -> None:
    routes = {
        (path, method.upper())
        for path, operations in app.openapi()['paths'].items()
        for method in operations
    }

    assert ('/health', 'GET') in routes
    assert ('/api/doctors', 'POST') in routes
    assert ('/api/doctors/{doctor_id}/appointments', 'GET') in routes
    assert ('/api/patients/{patient_id}', 'PUT') in routes
    assert ('/api/appointments', 'POST') in routes
    assert ('/api/appointments/{appointment_id}', 'PUT') in routes
    assert ('/api/appointments/date/{day}', 'GET') in routes
    assert ('/api/appointments/{appointment_id}', 'DELETE') in routes

import logging
import platform
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core import config
from backend.models.appointment import Appointment
from backend.models.doctor import Doctor
from backend.models.patient import Patient
from backend.routes.dependencies import get_db

router = APIRouter(tags=['health'])

logger = logging.getLogger(__name__)


def count_rows(db: Session, model) -> int:
    return db.query(func.count(model.id)).scalar() or 0


@router.get('')
def get_health(db: Session = Depends(get_db)):
    timestamp = datetime.now(timezone.utc).isoformat()

    try:
        db.execute(text('SELECT 1'))
        database = {
            'connected': True,
            'doctor_count': count_rows(db, Doctor),
            'patient_count': count_rows(db, Patient),
            'appointment_count': count_rows(db, Appointment),
        }
    except SQLAlchemyError as exc:
        logger.exception('Health check failed')
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                'status': 'unhealthy',
                'timestamp': timestamp,
                'error': str(exc),
                'database': {'connected': False},
            },
        )

    logger.info('Health check successful')
    return {
        'status': 'healthy',
        'timestamp': timestamp,
        'database': database,
        'application': {
            'environment': config.APP_ENV,
            'machine_name': platform.node(),
            'version': config.APP_VERSION,
        },
    }

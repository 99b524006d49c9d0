from fastapi import BackgroundTasks, Depends
from sqlmodel import Session

from ..core.config import settings
from ..database import get_session
from ..application.services.appointments_service import AppointmentsService
from ..application.services.doctors_service import DoctorsService
from ..application.services.notification_dispatcher import NotificationDispatcher
from ..application.ports.notifier import Notifier
from ..infrastructure.notifications.factory import build_notifier
from ..infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.directory_sql import SqlDirectory


def get_notifier() -> Notifier:
    return build_notifier(settings)


def get_notification_dispatcher(
    background_tasks: BackgroundTasks,
    notifier: Notifier = Depends(get_notifier),
) -> NotificationDispatcher:
    # Emails go out after the response is sent, never inside the request's write path
    return NotificationDispatcher(
        notifier=notifier,
        schedule=background_tasks.add_task,
        enabled=settings.NOTIFICATIONS_ENABLED,
    )


def get_appointments_service(
    session: Session = Depends(get_session),
    notifications: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> AppointmentsService:
    return AppointmentsService(
        repo=SqlAppointmentsRepository(session),
        directory=SqlDirectory(session),
        notifications=notifications,
    )


def get_doctors_service(
    session: Session = Depends(get_session),
    appointments: AppointmentsService = Depends(get_appointments_service),
) -> DoctorsService:
    return DoctorsService(directory=SqlDirectory(session), appointments=appointments)

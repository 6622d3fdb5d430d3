"""Accesso agli appuntamenti salvati nel database"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import Appointment, AppointmentStatus

logger = logging.getLogger(__name__)

RECENT_LIMIT = 50

# Ordinamenti usati dal pannello
NEWEST_FIRST = (Appointment.created_at.desc(), Appointment.id.desc())
SOONEST_FIRST = (Appointment.date.asc(), Appointment.time.asc(), Appointment.id.asc())


class RepositoryError(Exception):
    """Operazione sul database fallita (timeout, connessione persa, vincolo violato)."""


def _status_value(status) -> str:
    return status.value if isinstance(status, AppointmentStatus) else AppointmentStatus(status).value


class AppointmentRepository:
    """Unico proprietario dei record Appointment. Nessun retry: un errore viene solo segnalato."""

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, operation: str, error: Exception):
        self.db.rollback()
        logger.error(f"❌ {operation} fallito: {error}")
        raise RepositoryError(f"{operation} failed") from error

    def get(self, appointment_id: int) -> Optional[Appointment]:
        try:
            return self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        except SQLAlchemyError as e:
            self._fail("get", e)

    def list_by_status(self, status, *order_by, limit: Optional[int] = None) -> list[Appointment]:
        try:
            query = self.db.query(Appointment).filter(Appointment.status == _status_value(status))
            if order_by:
                query = query.order_by(*order_by)
            if limit is not None:
                query = query.limit(limit)
            return query.all()
        except SQLAlchemyError as e:
            self._fail("list_by_status", e)

    def list_requests(self) -> list[Appointment]:
        return self.list_by_status(AppointmentStatus.PENDING, *NEWEST_FIRST)

    def list_accepted(self) -> list[Appointment]:
        return self.list_by_status(AppointmentStatus.ACCEPTED, *SOONEST_FIRST)

    def list_recent(self, limit: int = RECENT_LIMIT) -> list[Appointment]:
        return self.list_by_status(AppointmentStatus.DONE, *NEWEST_FIRST, limit=limit)

    def create(self, **fields) -> Appointment:
        fields.pop("id", None)
        fields.pop("created_at", None)
        fields["status"] = AppointmentStatus.PENDING.value
        appointment = Appointment(**fields)
        try:
            self.db.add(appointment)
            self.db.commit()
            self.db.refresh(appointment)
        except SQLAlchemyError as e:
            self._fail("create", e)
        return appointment

    def update_status(self, appointment_id: int, new_status, expected_status=None) -> Optional[Appointment]:
        """
        Imposta lo stato in un solo UPDATE.

        Con expected_status l'aggiornamento avviene solo se lo stato attuale
        coincide; altrimenti (o se l'id non esiste) ritorna None.
        """
        try:
            query = self.db.query(Appointment).filter(Appointment.id == appointment_id)
            if expected_status is not None:
                query = query.filter(Appointment.status == _status_value(expected_status))
            updated = query.update(
                {Appointment.status: _status_value(new_status)}, synchronize_session=False
            )
            self.db.commit()
            if not updated:
                return None
            return self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        except SQLAlchemyError as e:
            self._fail("update_status", e)

    def delete(self, appointment_id: int, expected_status=None) -> bool:
        try:
            query = self.db.query(Appointment).filter(Appointment.id == appointment_id)
            if expected_status is not None:
                query = query.filter(Appointment.status == _status_value(expected_status))
            deleted = query.delete(synchronize_session=False)
            self.db.commit()
            return deleted > 0
        except SQLAlchemyError as e:
            self._fail("delete", e)

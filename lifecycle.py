"""
Ciclo di vita di un appuntamento.

    pending --accept--> accepted --complete--> done
       |
       +--reject--> (eliminato)

Non esiste uno stato "rejected": rifiutare una richiesta la cancella.
"""

import logging

from models import Appointment, AppointmentStatus
from repository import AppointmentRepository

logger = logging.getLogger(__name__)


class AppointmentNotFound(Exception):
    def __init__(self, appointment_id):
        super().__init__(f"Appointment {appointment_id} not found")
        self.appointment_id = appointment_id


class AppointmentLifecycle:
    """
    Applica le transizioni di stato tramite il repository.

    In modalità strict ogni transizione è un aggiornamento condizionato sullo
    stato atteso (accept e reject solo da pending, complete solo da accepted):
    un appuntamento nello stato sbagliato viene trattato come inesistente.
    Con strict=False l'aggiornamento dipende solo dall'id, come nella prima
    versione del pannello, e due richieste concorrenti sullo stesso id
    vengono risolte dal database (vince l'ultima scrittura).
    """

    def __init__(self, repository: AppointmentRepository, strict: bool = True):
        self.repository = repository
        self.strict = strict

    def _expected(self, status: AppointmentStatus):
        return status if self.strict else None

    def _transition(self, appointment_id: int, source: AppointmentStatus, target: AppointmentStatus) -> Appointment:
        appointment = self.repository.update_status(
            appointment_id, target, expected_status=self._expected(source)
        )
        if appointment is None:
            logger.warning(f"⚠️ Appuntamento {appointment_id} non trovato ({source.value} -> {target.value})")
            raise AppointmentNotFound(appointment_id)
        logger.info(f"Appuntamento {appointment_id}: {source.value} -> {target.value}")
        return appointment

    def accept(self, appointment_id: int) -> Appointment:
        return self._transition(appointment_id, AppointmentStatus.PENDING, AppointmentStatus.ACCEPTED)

    def complete(self, appointment_id: int) -> Appointment:
        return self._transition(appointment_id, AppointmentStatus.ACCEPTED, AppointmentStatus.DONE)

    def reject(self, appointment_id: int) -> None:
        deleted = self.repository.delete(
            appointment_id, expected_status=self._expected(AppointmentStatus.PENDING)
        )
        if not deleted:
            logger.warning(f"⚠️ Richiesta {appointment_id} non trovata, niente da rifiutare")
            raise AppointmentNotFound(appointment_id)
        logger.info(f"Richiesta {appointment_id} rifiutata ed eliminata")

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Integer, String

from database import Base


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DONE = "done"


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    service = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    time = Column(String, nullable=False)  # Formato HH:MM
    status = Column(String, nullable=False, default=AppointmentStatus.PENDING.value, index=True)

    # Assegnato alla creazione, mai modificato
    created_at = Column(DateTime, nullable=False, default=_utcnow)  # UTC, senza fuso

    def __repr__(self):
        return f"<Appointment {self.id} {self.name} {self.date} {self.time} [{self.status}]>"

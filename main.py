import datetime as dt
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Depends, Request, Response, Cookie, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse, RedirectResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

import auth
import models
from config import Settings, configure_logging
from database import Database, DatabaseUnavailable
from lifecycle import AppointmentLifecycle, AppointmentNotFound
from notifications import invia_telegram_admin, messaggio_nuova_richiesta
from repository import AppointmentRepository, RepositoryError

logger = logging.getLogger(__name__)

# --- PAGINE HTML (relative a PAGES_DIR) ---
PAGES = {
    "login": ("login", "login.html"),
    "home": ("home", "home.html"),
    "see-requests": ("see-requests", "see-requests.html"),
    "see-appointments": ("see-appointments", "see-appointments.html"),
    "see-recent-appointments": ("see-recent-appointments", "index.html"),
}


# --- MODELLI PYDANTIC ---
class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


async def leggi_credenziali(request: Request) -> LoginRequest:
    """Il form di login può arrivare come JSON o come form urlencoded."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        dati = dict(await request.form())
    else:
        try:
            dati = await request.json()
        except ValueError:
            dati = {}
    if not isinstance(dati, dict):
        dati = {}
    return LoginRequest(
        username=str(dati.get("username") or ""),
        password=str(dati.get("password") or ""),
    )


class AppointmentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    service: str = Field(min_length=1)
    date: dt.date
    time: str = Field(min_length=1)

    @field_validator("time")
    @classmethod
    def valida_ora(cls, v):
        # Salvata sempre come HH:MM, così l'ordinamento per stringa coincide con quello orario
        try:
            return dt.datetime.strptime(v, "%H:%M").strftime("%H:%M")
        except ValueError:
            raise ValueError("time must be in HH:MM format") from None


class AppointmentOut(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    service: str
    date: dt.date
    time: str
    status: str
    createdAt: dt.datetime

    @classmethod
    def from_model(cls, appointment: models.Appointment) -> "AppointmentOut":
        return cls(
            id=appointment.id,
            name=appointment.name,
            email=appointment.email,
            phone=appointment.phone,
            service=appointment.service,
            date=appointment.date,
            time=appointment.time,
            status=appointment.status,
            createdAt=appointment.created_at.replace(tzinfo=dt.timezone.utc),
        )


def serializza(appointments) -> list[dict]:
    return [AppointmentOut.from_model(a).model_dump(mode="json") for a in appointments]


def errore(status_code: int, messaggio: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": messaggio})


# --- DIPENDENZE ---
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request):
    # DatabaseUnavailable qui diventa un 500 tramite l'handler registrato in create_app
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


def get_repository(db: Session = Depends(get_db)) -> AppointmentRepository:
    return AppointmentRepository(db)


def get_lifecycle(
    repo: AppointmentRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> AppointmentLifecycle:
    return AppointmentLifecycle(repo, strict=settings.lifecycle_strict)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    database = database or Database(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_recycle=settings.db_pool_recycle,
    )
    pages_dir = Path(settings.pages_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Senza database il server non parte
        database.connect()
        database.create_tables()
        logger.info(f"🚀 Ambiente: {settings.environment}")
        logger.info(f"📁 {len(settings.admins)} credenziali admin caricate dall'ambiente")
        yield
        database.dispose()

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database

    def pagina(nome: str) -> FileResponse:
        cartella, file = PAGES[nome]
        return FileResponse(pages_dir / cartella / file)

    # --- GESTIONE ERRORI ---
    @app.exception_handler(auth.LoginRequired)
    async def login_required_handler(request: Request, exc: auth.LoginRequired):
        return RedirectResponse("/login", status_code=status.HTTP_302_FOUND)

    @app.exception_handler(DatabaseUnavailable)
    async def database_unavailable_handler(request: Request, exc: DatabaseUnavailable):
        logger.error(f"Database connection failed: {exc}")
        return errore(500, "Database connection failed")

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return PlainTextResponse("Page not found", status_code=404)
        return await http_exception_handler(request, exc)

    # --- PAGINE WEB ---
    @app.get("/")
    def root():
        return RedirectResponse("/login", status_code=status.HTTP_302_FOUND)

    @app.get("/login")
    def pagina_login(is_logged_in: Optional[str] = Cookie(None, alias=auth.SESSION_COOKIE)):
        if auth.is_logged_in(is_logged_in):
            return RedirectResponse("/home", status_code=status.HTTP_302_FOUND)
        return pagina("login")

    @app.get("/home", dependencies=[Depends(auth.require_login)])
    def pagina_home():
        return pagina("home")

    @app.get("/see-requests", dependencies=[Depends(auth.require_login)])
    def pagina_richieste():
        return pagina("see-requests")

    @app.get("/see-appointments", dependencies=[Depends(auth.require_login)])
    def pagina_appuntamenti():
        return pagina("see-appointments")

    @app.get("/see-recent-appointments", dependencies=[Depends(auth.require_login)])
    def pagina_recenti():
        return pagina("see-recent-appointments")

    # --- LOGIN / LOGOUT ---
    @app.post("/login")
    async def login(response: Response, dati: LoginRequest = Depends(leggi_credenziali)):
        admin = auth.authenticate(settings.admins, dati.username, dati.password)
        if admin is None:
            logger.warning(f"Login fallito per {dati.username!r}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"success": False, "message": "Invalid credentials"},
            )
        auth.issue_session(response, secure=settings.is_production)
        logger.info(f"Login effettuato da {admin.username!r}")
        return {"success": True}

    @app.post("/logout")
    def logout(response: Response):
        auth.clear_session(response)
        return {"success": True}

    # --- API PUBBLICA ---
    @app.post("/api/book", status_code=status.HTTP_201_CREATED)
    def prenota(dati: AppointmentCreate, repo: AppointmentRepository = Depends(get_repository)):
        try:
            nuova = repo.create(**dati.model_dump())
        except RepositoryError:
            return errore(500, "Failed to create appointment")

        invia_telegram_admin(
            settings.telegram_bot_token, settings.telegram_chat_id, messaggio_nuova_richiesta(nuova)
        )
        return {"success": True, "appointment": AppointmentOut.from_model(nuova).model_dump(mode="json")}

    # --- API ADMIN ---
    protette = [Depends(auth.require_login)]

    @app.get("/api/requests", dependencies=protette)
    def lista_richieste(repo: AppointmentRepository = Depends(get_repository)):
        try:
            return serializza(repo.list_requests())
        except RepositoryError:
            return errore(500, "Failed to fetch requests")

    @app.post("/api/requests/{appointment_id}/accept", dependencies=protette)
    def accetta(appointment_id: int, lifecycle: AppointmentLifecycle = Depends(get_lifecycle)):
        try:
            appointment = lifecycle.accept(appointment_id)
        except AppointmentNotFound:
            return errore(404, "Appointment not found")
        except RepositoryError:
            return errore(500, "Failed to accept appointment")
        return {"success": True, "appointment": AppointmentOut.from_model(appointment).model_dump(mode="json")}

    @app.post("/api/requests/{appointment_id}/reject", dependencies=protette)
    def rifiuta(appointment_id: int, lifecycle: AppointmentLifecycle = Depends(get_lifecycle)):
        try:
            lifecycle.reject(appointment_id)
        except AppointmentNotFound:
            return errore(404, "Appointment not found")
        except RepositoryError:
            return errore(500, "Failed to reject appointment")
        return {"success": True}

    @app.get("/api/appointments", dependencies=protette)
    def lista_appuntamenti(repo: AppointmentRepository = Depends(get_repository)):
        try:
            return serializza(repo.list_accepted())
        except RepositoryError:
            return errore(500, "Failed to fetch appointments")

    @app.post("/api/appointments/{appointment_id}/done", dependencies=protette)
    def completa(appointment_id: int, lifecycle: AppointmentLifecycle = Depends(get_lifecycle)):
        try:
            appointment = lifecycle.complete(appointment_id)
        except AppointmentNotFound:
            return errore(404, "Appointment not found")
        except RepositoryError:
            return errore(500, "Failed to mark appointment as done")
        return {"success": True, "appointment": AppointmentOut.from_model(appointment).model_dump(mode="json")}

    @app.get("/api/recent-appointments", dependencies=protette)
    def lista_recenti(repo: AppointmentRepository = Depends(get_repository)):
        try:
            return serializza(repo.list_recent())
        except RepositoryError:
            return errore(500, "Failed to fetch recent appointments")

    return app


settings = Settings.from_env()
configure_logging(settings.log_level)
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)

import logging

import requests

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"


def invia_telegram_admin(token: str, chat_id: str, messaggio: str) -> bool:
    """Avvisa l'admin su Telegram. Un errore di invio non blocca mai la prenotazione."""
    if not token or not chat_id:
        logger.warning("⚠️ Telegram non configurato, notifica saltata.")
        return False

    url = f"{TELEGRAM_API}/bot{token}/sendMessage"
    payload = {"chat_id": chat_id, "text": messaggio, "parse_mode": "Markdown"}
    try:
        response = requests.post(url, json=payload, timeout=5)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"❌ Errore Telegram: {e}")
        return False
    return True


def messaggio_nuova_richiesta(appointment) -> str:
    return (
        "🔔 *NUOVA RICHIESTA*\n"
        f"👤 {appointment.name}\n"
        f"💇 {appointment.service}\n"
        f"📅 {appointment.date.isoformat()} {appointment.time}\n"
        f"📞 {appointment.phone}"
    )

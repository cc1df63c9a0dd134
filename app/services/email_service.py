# app/services/email_service.py
import logging
import smtplib
from email.message import EmailMessage

from app.config import Settings

logger = logging.getLogger(__name__)


class EmailService:
    """
    Envoi des codes de réinitialisation.
    Sans SMTP configuré, le message n'est pas envoyé (une ligne de log le signale).
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def _send(self, to: str, subject: str, body: str) -> bool:
        s = self.settings
        if not s.SMTP_CONFIGURED:
            logger.warning("[email] SMTP non configuré, message non envoyé à %s", to)
            return False

        msg = EmailMessage()
        msg["From"] = s.SMTP_FROM or s.SMTP_USER
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)

        try:
            with smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=10) as smtp:
                smtp.starttls()
                smtp.login(s.SMTP_USER, s.SMTP_PASS)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError):
            logger.exception("[email] échec d'envoi à %s", to)
            return False

        logger.info("[email] message envoyé à %s", to)
        return True

    def send_reset_code(self, to: str, name: str, code: str, ttl_minutes: int) -> bool:
        body = (
            f"Bonjour {name},\n\n"
            f"Votre code de réinitialisation de mot de passe est : {code}\n"
            f"Ce code est valable {ttl_minutes} minutes et ne peut être utilisé qu'une fois.\n\n"
            "Si vous n'êtes pas à l'origine de cette demande, ignorez ce message.\n"
        )
        sent = self._send(to, "Réinitialisation de votre mot de passe", body)
        if not sent and self.settings.DEBUG:
            logger.info("[email] (DEBUG) code de réinitialisation pour %s : %s", to, code)
        return sent

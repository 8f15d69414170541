import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables."""

    # --- Paths ---
    base_dir: Path = Path(__file__).resolve().parent.parent
    database_url: str = os.getenv("DATABASE_URL", f"sqlite:///{base_dir / 'leadline.db'}")

    # --- Twilio (SMS carrier) ---
    twilio_account_sid: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    twilio_auth_token: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    twilio_phone_number: str = os.getenv("TWILIO_PHONE_NUMBER", "")
    twilio_validate_signature: bool = _flag("TWILIO_VALIDATE_SIGNATURE", "1")
    sms_timeout_seconds: float = float(os.getenv("SMS_TIMEOUT_SECONDS", "15"))

    # --- Botpress (bot platform) ---
    botpress_webhook_url: str = os.getenv("BOTPRESS_WEBHOOK_URL", "")
    bot_timeout_seconds: float = float(os.getenv("BOT_TIMEOUT_SECONDS", "10"))

    # --- Consistency / diagnostics ---
    # "best_effort": secondary row written after the primary commit, failures logged.
    # "atomic": both rows in one transaction.
    dual_write_mode: str = os.getenv("DUAL_WRITE_MODE", "best_effort")
    expose_diagnostics: bool = _flag("EXPOSE_DIAGNOSTICS")

    def validate(self):
        if self.dual_write_mode not in ("best_effort", "atomic"):
            raise EnvironmentError(
                f"DUAL_WRITE_MODE must be 'best_effort' or 'atomic', got {self.dual_write_mode!r}"
            )


settings = Settings()

"""
Configuration and environment variable handling.
"""
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from logger import logger

# Load environment variables from .env file
load_dotenv()

DEFAULT_SUPPORT_EMAIL = "support@celesteiq.com"
DEFAULT_KNOWLEDGE_BASE_PATH = os.path.join(os.path.dirname(__file__), "data", "packages.json")


class ConfigurationError(Exception):
    """Raised when an environment variable holds an unusable value."""


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    google_api_key: str | None = None
    support_email: str = DEFAULT_SUPPORT_EMAIL
    knowledge_base_path: str = DEFAULT_KNOWLEDGE_BASE_PATH
    model_name: str = "gemini-2.0-flash"
    max_output_tokens: int = 300
    temperature: float = 0.3
    locales: tuple[str, ...] = ("es",)
    default_locale: str = "es"
    port: int = 5000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        locales = tuple(
            part.strip().lower()
            for part in os.getenv("LOCALES", "es").split(",")
            if part.strip()
        ) or ("es",)
        default_locale = os.getenv("DEFAULT_LOCALE", locales[0]).strip().lower()
        if default_locale not in locales:
            raise ConfigurationError(
                f"DEFAULT_LOCALE {default_locale!r} is not one of LOCALES {list(locales)}"
            )

        return cls(
            google_api_key=os.getenv("GOOGLE_API_KEY") or None,
            support_email=(
                os.getenv("SUPPORT_EMAIL")
                or os.getenv("NEXT_PUBLIC_SUPPORT_EMAIL")
                or DEFAULT_SUPPORT_EMAIL
            ),
            knowledge_base_path=os.getenv("KNOWLEDGE_BASE_PATH") or DEFAULT_KNOWLEDGE_BASE_PATH,
            model_name=os.getenv("GEMINI_MODEL") or "gemini-2.0-flash",
            max_output_tokens=_get_int("MAX_OUTPUT_TOKENS", 300),
            temperature=_get_float("TEMPERATURE", 0.3),
            locales=locales,
            default_locale=default_locale,
            port=_get_int("PORT", 5000),
        )


def validate_environment_variables() -> bool:
    """
    Log the status of the environment variables the chatbot relies on.

    A missing GOOGLE_API_KEY does not stop the server: the answer route
    reports a server error until a key is configured. Returns True when
    every required variable is present.
    """
    required_vars = {
        "GOOGLE_API_KEY": "Google Generative AI key for answer generation",
    }

    optional_vars = {
        "SUPPORT_EMAIL": f"Contact address quoted to users (defaults to {DEFAULT_SUPPORT_EMAIL})",
        "KNOWLEDGE_BASE_PATH": "Path to the knowledge base JSON (defaults to data/packages.json)",
        "GEMINI_MODEL": "Gemini model name (defaults to gemini-2.0-flash)",
        "LOCALES": "Comma-separated supported locales (defaults to es)",
        "PORT": "Server port (defaults to 5000)",
    }

    all_present = True
    for var_name, description in required_vars.items():
        value = os.getenv(var_name)
        if not value or not value.strip():
            logger.error("Missing required environment variable: %s (%s)", var_name, description)
            all_present = False

    for var_name, description in optional_vars.items():
        value = os.getenv(var_name)
        if not value or not value.strip():
            logger.info("Optional environment variable not set: %s - %s", var_name, description)
        else:
            logger.debug("Environment variable set: %s", var_name)

    return all_present

import logging
import os
import re
import unicodedata

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in {"1", "true", "yes", "on"}


# ======================= Logging =======================
def configure_logging(level=None, log_file=None):
    """
    Configure root logging once per process.

    TREATMENT_DEBUG switches the default level to DEBUG and TREATMENT_LOG_FILE
    adds a file handler next to the console output.
    """
    if level is None:
        level = logging.DEBUG if _env_flag("TREATMENT_DEBUG") else logging.INFO
    handlers = [logging.StreamHandler()]
    log_file = log_file or os.getenv("TREATMENT_LOG_FILE")
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


# ======================= Text Cleaning =======================
def clean_disease_name(text) -> str:
    """
    Normalise a user-supplied disease name: Unicode NFKC, control characters
    dropped, whitespace collapsed. Returns "" for anything that is not text.
    """
    if not isinstance(text, str):
        return ""
    text = unicodedata.normalize("NFKC", text)
    text = "".join(ch for ch in text if unicodedata.category(ch)[0] != "C" or ch.isspace())
    return re.sub(r"\s+", " ", text).strip()

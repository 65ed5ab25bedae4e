"""
➡️ But : Configurer les logs de l'application en un seul endroit.

setup_logging() est appelée au démarrage (flix.main) ; chaque module récupère
ensuite son logger via logging.getLogger(__name__).
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: Optional[str] = None, name: str = "flix") -> logging.Logger:
    """
    Configure le logger racine du package.

    Args:
        level: niveau (DEBUG, INFO, WARNING...). Par défaut settings.LOG_LEVEL.
        name: nom du logger parent (tous les modules flix.* en héritent)

    Returns:
        Le logger configuré
    """
    if level is None:
        from flix.core.config import settings
        level = settings.LOG_LEVEL

    logger = logging.getLogger(name)
    logger.setLevel(level.upper())

    # Évite les handlers en double (reload uvicorn, tests)
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

    return logger

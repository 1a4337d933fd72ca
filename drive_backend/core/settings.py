"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
"""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Détermination du fichier .env à utiliser avec priorité:
# 1) ENV_FILE (chemin explicite)
# 2) .env.{APP_ENV} si présent
# 3) .env (défaut)
_cwd = Path.cwd()
_env_file_from_env = os.getenv("ENV_FILE")
if _env_file_from_env:
    _ENV_FILE_PATH = _env_file_from_env
else:
    _app_env = os.getenv("APP_ENV", "dev")
    _candidate_specific = _cwd / f".env.{_app_env}"
    _candidate_default = _cwd / ".env"
    if _candidate_specific.exists():
        _ENV_FILE_PATH = _candidate_specific
    else:
        _ENV_FILE_PATH = _candidate_default


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
    )
    APP_NAME: str = "drive-erasure"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = True

    DATABASE_URL: str | None = None
    REDIS_URL: str | None = None

    # Admin: sans secret, les routes /admin ne sont pas montées
    ADMIN_ENDPOINT_SECRET: str | None = None

    # Stockage objet: "local" | "memory"
    STORAGE_BACKEND: str = "local"
    STORAGE_ROOT: str = "./var/storage"

    # Index de recherche: "memory" | "elasticsearch"
    SEARCH_BACKEND: str = "memory"
    SEARCH_URL: str | None = None
    SEARCH_API_KEY: str | None = None
    SEARCH_ITEMS_INDEX: str = "drive_files"
    SEARCH_USERS_INDEX: str = "users"

    # Suppression des comptes
    DELETE_BATCH_SIZE: int = 10
    DELETE_SCAN_FILES_BY_OWNER: bool = True
    DELETION_SWEEP_LIMIT: int = 100
    DELETION_IDEMPOTENCY_TTL: int = 300
    AUDIT_DIR: str = "artifacts/audit"

    CELERY_BROKER_URL: str = "redis://redis:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://redis:6379/1"


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

logger = logging.getLogger(__name__)

DEFAULT_SITE_URL = "https://snokingahl.com"
DEFAULT_API_BASE = "https://metal-api.sportninja.net/v1"
DEFAULT_ORG_ID = "77NV8cZJ8xzsgvjL"
DEFAULT_TOKEN_STORAGE_KEY = "session_token_iframe"
DEFAULT_EMULATOR_PROJECT_ID = "skahl-stats"
DEFAULT_PROJECT_ID = "spof-io"


class StoreMode(str, Enum):
    EMULATOR = "emulator"
    SERVICE_ACCOUNT = "service_account"
    APPLICATION_DEFAULT = "application_default"


@dataclass(frozen=True)
class SourceConfig:
    site_url: str
    api_base: str
    org_id: str
    token_storage_key: str
    token_poll_attempts: int
    token_poll_delay_seconds: float
    navigation_timeout_ms: int


@dataclass(frozen=True)
class StoreConfig:
    mode: StoreMode
    project_id: str
    collection_prefix: str | None = None
    service_account_info: dict[str, Any] | None = None
    emulator_host: str | None = None


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


def resolve_source_config(environ: Mapping[str, str] | None = None) -> SourceConfig:
    env = os.environ if environ is None else environ
    return SourceConfig(
        site_url=(env.get("SKAHL_SITE_URL") or DEFAULT_SITE_URL).rstrip("/"),
        api_base=(env.get("SPORTNINJA_API_BASE") or DEFAULT_API_BASE).rstrip("/"),
        org_id=env.get("SPORTNINJA_ORG_ID") or DEFAULT_ORG_ID,
        token_storage_key=env.get("TOKEN_STORAGE_KEY") or DEFAULT_TOKEN_STORAGE_KEY,
        token_poll_attempts=max(1, _env_int(env, "TOKEN_POLL_ATTEMPTS", 20)),
        token_poll_delay_seconds=max(0.0, _env_float(env, "TOKEN_POLL_DELAY_SECONDS", 1.0)),
        navigation_timeout_ms=_env_int(env, "BROWSER_NAVIGATION_TIMEOUT_MS", 30000),
    )


def resolve_store_config(environ: Mapping[str, str] | None = None) -> StoreConfig:
    """Pick how to reach Firestore: emulator, service account, or ADC.

    Resolved once at process start and handed to every component.
    """

    env = os.environ if environ is None else environ
    prefix = (env.get("COLLECTION_PREFIX") or "").strip() or None
    project_override = (env.get("FIREBASE_PROJECT_ID") or "").strip() or None

    emulator_host = (env.get("FIRESTORE_EMULATOR_HOST") or "").strip()
    if emulator_host:
        return StoreConfig(
            mode=StoreMode.EMULATOR,
            project_id=project_override or DEFAULT_EMULATOR_PROJECT_ID,
            collection_prefix=prefix,
            emulator_host=emulator_host,
        )

    service_account_raw = (env.get("FIREBASE_SERVICE_ACCOUNT") or "").strip()
    if service_account_raw:
        try:
            info = json.loads(service_account_raw)
        except json.JSONDecodeError as exc:
            raise ValueError("FIREBASE_SERVICE_ACCOUNT is not valid JSON") from exc
        if not isinstance(info, dict):
            raise ValueError("FIREBASE_SERVICE_ACCOUNT must be a JSON object")
        return StoreConfig(
            mode=StoreMode.SERVICE_ACCOUNT,
            project_id=project_override or info.get("project_id") or DEFAULT_PROJECT_ID,
            collection_prefix=prefix,
            service_account_info=info,
        )

    logger.info("No FIREBASE_SERVICE_ACCOUNT found. Using Application Default Credentials.")
    return StoreConfig(
        mode=StoreMode.APPLICATION_DEFAULT,
        project_id=project_override or DEFAULT_PROJECT_ID,
        collection_prefix=prefix,
    )

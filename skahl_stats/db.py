from __future__ import annotations

import logging
import os
from functools import lru_cache

from google.cloud import firestore
from google.oauth2 import service_account

from skahl_stats.models import Collections, collection_names
from skahl_stats.settings import StoreConfig, StoreMode, resolve_store_config

logger = logging.getLogger(__name__)


def create_client(config: StoreConfig) -> firestore.Client:
    if config.mode is StoreMode.EMULATOR:
        # The client library routes to the emulator when this variable is set.
        os.environ.setdefault("FIRESTORE_EMULATOR_HOST", config.emulator_host or "")
        logger.info(
            "Connecting to Firestore emulator host=%s project=%s",
            config.emulator_host,
            config.project_id,
        )
        return firestore.Client(project=config.project_id)

    if config.mode is StoreMode.SERVICE_ACCOUNT:
        credentials = service_account.Credentials.from_service_account_info(
            config.service_account_info or {}
        )
        logger.info("Connecting to Firestore with service account project=%s", config.project_id)
        return firestore.Client(project=config.project_id, credentials=credentials)

    logger.info("Connecting to Firestore with application default credentials project=%s", config.project_id)
    return firestore.Client(project=config.project_id)


@lru_cache(maxsize=1)
def _store_config() -> StoreConfig:
    return resolve_store_config()


@lru_cache(maxsize=1)
def _client() -> firestore.Client:
    return create_client(_store_config())


def get_db() -> firestore.Client:
    return _client()


def get_collections() -> Collections:
    return collection_names(_store_config().collection_prefix)

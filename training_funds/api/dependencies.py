"""
API Dependencies

Builds the configuration, store, notifier and workflow service used by the
routes. Tests replace these through ``app.dependency_overrides``.
"""

import logging
from functools import lru_cache

from ..config import WorkflowConfig, load_config
from ..fund_request.request_store import FundingRequestStore
from ..notifications.dispatcher import NotificationDispatcher
from ..notifications.notifier import LoggingNotifier, Notifier, SmtpNotifier
from ..storage.kv_store import InMemoryKeyValueStore, KeyValueStore
from ..storage.sql_store import SqlKeyValueStore
from ..workflow import FundingRequestService

logger = logging.getLogger(__name__)


def build_kv_store(config: WorkflowConfig) -> KeyValueStore:
    """Create the key-value store named by the configuration."""
    if not config.database_url:
        logger.warning("DATABASE_URL not configured, using in-memory store")
        return InMemoryKeyValueStore()

    store = SqlKeyValueStore(config.database_url)
    store.create_schema()
    return store


def build_notifier(config: WorkflowConfig) -> Notifier:
    """Create the mail transport named by the configuration."""
    if not config.smtp.configured:
        logger.warning("SMTP_HOST not configured, notifications will only be logged")
        return LoggingNotifier()
    return SmtpNotifier(config.smtp)


def build_service(config: WorkflowConfig) -> FundingRequestService:
    """Wire the workflow service from configuration."""
    store = FundingRequestStore(build_kv_store(config))
    dispatcher = NotificationDispatcher(build_notifier(config), config)
    return FundingRequestService(store, dispatcher, config)


@lru_cache
def get_config() -> WorkflowConfig:
    return load_config()


@lru_cache
def get_service() -> FundingRequestService:
    return build_service(get_config())

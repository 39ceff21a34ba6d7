"""
Configuration for the KBV fetch-questions service.
Every setting has a default and can be overridden through environment variables.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Shipped as package data
DEFAULT_POLICY_PATH = str(Path(__file__).parent / 'contexts' / 'question_policy.yaml')


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


def _env_int(name: str, default: str) -> int:
    return int(os.getenv(name, default))


@dataclass
class QuestionsApiConfig:
    """Settings for the external question bank."""
    timeout: float = field(default_factory=lambda: _env_float('QUESTIONS_API_TIMEOUT', '30.0'))


@dataclass
class PolicyConfig:
    """Sufficiency threshold and question filter policy."""
    minimum_question_count: int = field(default_factory=lambda: _env_int('MINIMUM_QUESTION_COUNT', '2'))
    policy_path: str = field(default_factory=lambda: os.getenv('QUESTION_POLICY_PATH', DEFAULT_POLICY_PATH))


@dataclass
class StoreConfig:
    """Saved-questions store backend."""
    backend: str = field(default_factory=lambda: os.getenv('SAVED_QUESTIONS_STORE', 'memory'))
    db_path: str = field(default_factory=lambda: os.getenv('SAVED_QUESTIONS_DB_PATH', './data/saved_questions.db'))


@dataclass
class AuditConfig:
    url: Optional[str] = field(default_factory=lambda: os.getenv('AUDIT_EVENT_URL') or None)
    event_prefix: str = field(default_factory=lambda: os.getenv('AUDIT_EVENT_PREFIX', 'IPV_HMRC_KBV_CRI'))
    component_id: str = field(default_factory=lambda: os.getenv('AUDIT_COMPONENT_ID', 'https://review-k.account.gov.uk'))
    timeout: float = field(default_factory=lambda: _env_float('AUDIT_TIMEOUT', '10.0'))


@dataclass
class MetricsConfig:
    namespace: str = field(default_factory=lambda: os.getenv('METRICS_NAMESPACE', 'kbv-cri'))
    service_name: str = field(default_factory=lambda: os.getenv('POWERTOOLS_SERVICE_NAME', 'FetchQuestions'))


@dataclass
class FastAPIConfig:
    host: str = field(default_factory=lambda: os.getenv('API_HOST', '0.0.0.0'))
    port: int = field(default_factory=lambda: _env_int('API_PORT', '8000'))
    log_level: str = field(default_factory=lambda: os.getenv('API_LOG_LEVEL', 'info'))


@dataclass
class AppConfig:
    log_level: str = field(default_factory=lambda: os.getenv('LOG_LEVEL', 'INFO'))


# Global configuration instances
questions_api_config = QuestionsApiConfig()
policy_config = PolicyConfig()
store_config = StoreConfig()
audit_config = AuditConfig()
metrics_config = MetricsConfig()
fastapi_config = FastAPIConfig()
app_config = AppConfig()

SUPPORTED_STORES = ("memory", "sqlite")


def validate_config() -> bool:
    """
    Validate the configuration read from the environment.

    Configs are rebuilt here so that environment changes made after import
    are taken into account. Creates the sqlite directory when that store is
    selected.

    Returns:
        True if every setting is usable, False otherwise
    """
    try:
        questions_api = QuestionsApiConfig()
        policy = PolicyConfig()
        store = StoreConfig()
        audit = AuditConfig()
        api = FastAPIConfig()
    except ValueError as e:
        logger.error(f"Configuration value could not be parsed: {e}")
        return False

    if policy.minimum_question_count < 1:
        logger.error("MINIMUM_QUESTION_COUNT must be at least 1")
        return False

    if questions_api.timeout <= 0 or audit.timeout <= 0:
        logger.error("Timeouts must be positive")
        return False

    if store.backend not in SUPPORTED_STORES:
        logger.error(f"Unknown saved questions store: {store.backend}")
        return False

    if not 1 <= api.port <= 65535:
        logger.error(f"Invalid API port: {api.port}")
        return False

    if store.backend == "sqlite":
        Path(store.db_path).parent.mkdir(parents=True, exist_ok=True)

    return True

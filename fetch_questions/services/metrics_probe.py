"""
Metric capture for the fetch-questions service.

Metrics are written as structured JSON log lines in embedded-metric format so
the log pipeline can turn them into metrics without an extra client.
"""

import json
import logging
import time
from enum import Enum, IntEnum
from typing import Optional, Union

from fetch_questions.config import MetricsConfig, metrics_config

logger = logging.getLogger(__name__)
metrics_logger = logging.getLogger("fetch_questions.metrics")


class MetricUnit(str, Enum):
    COUNT = "Count"
    MILLISECONDS = "Milliseconds"


class HandlerMetric(str, Enum):
    COMPLETION_STATUS = "CompletionStatus"


class CompletionStatus(IntEnum):
    ERROR = 0
    OK = 1


class MetricsProbe:
    """Records named metrics with a unit and a numeric value."""

    def __init__(self, config: Optional[MetricsConfig] = None):
        self.config = config or metrics_config

    def build_metric(self, name: str, unit: MetricUnit, value: Union[int, float]) -> dict:
        return {
            "_aws": {
                "Timestamp": int(time.time() * 1000),
                "CloudWatchMetrics": [{
                    "Namespace": self.config.namespace,
                    "Dimensions": [["service"]],
                    "Metrics": [{"Name": name, "Unit": unit.value}]
                }]
            },
            "service": self.config.service_name,
            name: int(value) if isinstance(value, IntEnum) else value
        }

    def capture_metric(self, name: Union[str, Enum], unit: MetricUnit, value: Union[int, float]) -> None:
        """Emit one metric. Never raises."""
        metric_name = name.value if isinstance(name, Enum) else name
        try:
            metrics_logger.info(json.dumps(self.build_metric(metric_name, unit, value)))
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to capture metric {metric_name}: {e}")

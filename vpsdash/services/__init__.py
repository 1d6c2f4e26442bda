"""Operation tracking services."""

from vpsdash.services.classifier import TriggerRule, classify
from vpsdash.services.error_translator import translate
from vpsdash.services.operations import OperationService
from vpsdash.services.poller import PollHandle, ProgressPoller
from vpsdash.services.progress_model import ProgressModel

__all__ = [
    "OperationService",
    "PollHandle",
    "ProgressModel",
    "ProgressPoller",
    "TriggerRule",
    "classify",
    "translate",
]

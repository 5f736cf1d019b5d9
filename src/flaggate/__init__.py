"""flaggate feature flag library."""

from .cache import MISSING, TtlCache
from .client import FlagStoreClient
from .config import FlagGateConfig, LogSection, load_config
from .evaluation import FlagGateClient, cache_key
from .evaluator import evaluate_flag, evaluate_rule, evaluate_rules
from .exceptions import FlagGateError, FlagGateErrorCodes
from .http_client import HttpFlagStoreClient
from .logger import new_logger
from .memory import InMemoryFlagStore
from .models import (
    ContextValue,
    EvaluationContext,
    Flag,
    Rule,
    RuleOperator,
    RulesLogic,
)
from .resolver import FlagIdResolver

__all__ = [
    "MISSING",
    "ContextValue",
    "EvaluationContext",
    "Flag",
    "FlagGateClient",
    "FlagGateConfig",
    "FlagGateError",
    "FlagGateErrorCodes",
    "FlagIdResolver",
    "FlagStoreClient",
    "HttpFlagStoreClient",
    "InMemoryFlagStore",
    "LogSection",
    "Rule",
    "RuleOperator",
    "RulesLogic",
    "TtlCache",
    "cache_key",
    "evaluate_flag",
    "evaluate_rule",
    "evaluate_rules",
    "load_config",
    "new_logger",
]

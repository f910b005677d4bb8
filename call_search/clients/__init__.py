"""Client modules for external services."""

from .base import AnswerGenerator, CallProvider, CrmClient
from .gong_client import GongClient
from .salesforce_client import SalesforceClient, escape_soql_value
from .anthropic_client import AnthropicAnswerGenerator

__all__ = [
    "AnswerGenerator",
    "CallProvider",
    "CrmClient",
    "GongClient",
    "SalesforceClient",
    "escape_soql_value",
    "AnthropicAnswerGenerator",
]

from odds_feed.common.enums import ExceptionHandlingStrategy
from odds_feed.common.errors import (
    CacheItemNotFoundError,
    CommunicationError,
    NameDescriptorFormatError,
    NameExpressionError,
    NameGenerationError,
    OddsFeedError,
    UnsupportedOperandError,
)
from odds_feed.common.urn import Urn
from odds_feed.markets.name_provider import NameProvider, NameProviderFactory

__all__ = [
    "CacheItemNotFoundError",
    "CommunicationError",
    "ExceptionHandlingStrategy",
    "NameDescriptorFormatError",
    "NameExpressionError",
    "NameGenerationError",
    "NameProvider",
    "NameProviderFactory",
    "OddsFeedError",
    "UnsupportedOperandError",
    "Urn",
]

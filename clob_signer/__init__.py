"""
CLOB Signer

Authenticated request signing for the Polymarket CLOB: EIP-712 typed data,
deterministic signing, L1/L2 auth headers and order building.

Adapted from Polymarket's official clients (MIT License):
- https://github.com/Polymarket/py-clob-client
- https://github.com/Polymarket/python-order-utils
"""

from .client import ClobClient
from .config import ClobSettings, ContractConfig, get_contract_config, POLYGON, AMOY
from .models import (
    Side,
    OrderType,
    SignatureType,
    AssetType,
    ApiCredentials,
    SignerConfig,
    OrderArgs,
    MarketOrderArgs,
    ExtraOrderArgs,
    CreateOrderOptions,
    SignedOrder,
    OrderSummary,
    OrderBookSummary,
    OpenOrderParams,
    TradeParams,
    BalanceAllowanceParams,
)
from .exceptions import (
    ClobError,
    ConfigurationError,
    EncodingError,
    SigningError,
    AuthenticationError,
    CredentialsNotSet,
    ValidationError,
    InvalidOrderParameters,
    MissingFunderAddress,
    APIError,
    TimeoutError,
)
from .signing import EIP712Domain, TypedMessage, typed_data_digest, Signer, Signature
from .auth import Authenticator, CredentialStore
from .trading import OrderBuilder

__version__ = "0.1.0"

__all__ = [
    # Main client
    "ClobClient",

    # Configuration
    "ClobSettings",
    "ContractConfig",
    "get_contract_config",
    "POLYGON",
    "AMOY",

    # Types
    "Side",
    "OrderType",
    "SignatureType",
    "AssetType",
    "ApiCredentials",
    "SignerConfig",
    "OrderArgs",
    "MarketOrderArgs",
    "ExtraOrderArgs",
    "CreateOrderOptions",
    "SignedOrder",
    "OrderSummary",
    "OrderBookSummary",
    "OpenOrderParams",
    "TradeParams",
    "BalanceAllowanceParams",

    # Exceptions
    "ClobError",
    "ConfigurationError",
    "EncodingError",
    "SigningError",
    "AuthenticationError",
    "CredentialsNotSet",
    "ValidationError",
    "InvalidOrderParameters",
    "MissingFunderAddress",
    "APIError",
    "TimeoutError",

    # Signing core
    "EIP712Domain",
    "TypedMessage",
    "typed_data_digest",
    "Signer",
    "Signature",
    "Authenticator",
    "CredentialStore",
    "OrderBuilder",
]

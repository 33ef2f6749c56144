"""
Type definitions for the CLOB signing client.

Uses Pydantic for runtime validation and type safety.
DECIMAL PRECISION: Prices, sizes and amounts are Decimal until they are
converted to integer base units by the order builder.
"""

from enum import Enum
from typing import Optional, Any
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator, ConfigDict

from .utils.numeric import to_decimal


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def _decimal(v: Any) -> Decimal:
    """Convert via string to avoid float precision loss."""
    dec = to_decimal(v)
    if dec is None:
        raise ValueError(f"Cannot convert {type(v).__name__} to Decimal")
    return dec


class Side(str, Enum):
    """Order side."""
    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    """Order type."""
    GTC = "GTC"  # Good-til-cancelled
    GTD = "GTD"  # Good-til-date
    FOK = "FOK"  # Fill-or-kill
    FAK = "FAK"  # Fill-and-kill


class SignatureType(int, Enum):
    """
    Wallet signature type.

    Values are part of the exchange contract and must not be renumbered.
    """
    EOA = 0  # Externally Owned Account (MetaMask, hardware wallet)
    EMAIL_OR_MAGIC = 1  # Magic/Email wallet
    BROWSER_WALLET_PROXY = 2  # Browser wallet proxy
    GNOSIS_SAFE = 3  # Gnosis Safe

    @property
    def uses_funder(self) -> bool:
        """Orders are made by a proxy/safe funded wallet, signed by the EOA."""
        return self is not SignatureType.EOA


class ApiCredentials(BaseModel):
    """
    API key triple obtained through L1 authentication.

    Immutable: rotating credentials means publishing a new instance.
    SECURITY: Secret and passphrase are hidden from repr.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_key: str = Field(..., alias="apiKey", min_length=1)
    secret: str = Field(..., repr=False, min_length=1)
    passphrase: str = Field(..., repr=False, min_length=1)

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> "ApiCredentials":
        """Parse the /auth/api-key and /auth/derive-api-key response."""
        return cls.model_validate(response)


class SignerConfig(BaseModel):
    """How orders are attributed: signature type and funding wallet."""
    model_config = ConfigDict(frozen=True)

    signature_type: SignatureType = Field(default=SignatureType.EOA)
    funder: Optional[str] = Field(None, description="Proxy/Safe address holding the funds")


# Order requests
class OrderArgs(BaseModel):
    """Limit order intent."""
    token_id: str = Field(..., description="ERC1155 token ID (decimal string)")
    price: Decimal = Field(..., description="Limit price")
    size: Decimal = Field(..., description="Size in conditional tokens")
    side: Side = Field(..., description="BUY or SELL")

    @field_validator("price", "size", mode="before")
    @classmethod
    def validate_numeric(cls, v: Any) -> Decimal:
        """Convert numeric fields to Decimal."""
        return _decimal(v)


class MarketOrderArgs(BaseModel):
    """Market BUY intent: spend ``amount`` USDC."""
    token_id: str = Field(..., description="ERC1155 token ID (decimal string)")
    amount: Decimal = Field(..., description="Amount in USDC")

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v: Any) -> Decimal:
        """Convert to Decimal."""
        return _decimal(v)


class ExtraOrderArgs(BaseModel):
    """Order fields that rarely change."""
    fee_rate_bps: int = Field(default=0, ge=0)
    nonce: int = Field(default=0, ge=0)
    taker: str = Field(default=ZERO_ADDRESS, description="Zero address = public order")


class CreateOrderOptions(BaseModel):
    """Market parameters the order depends on."""
    tick_size: Optional[Decimal] = None
    neg_risk: Optional[bool] = None

    @field_validator("tick_size", mode="before")
    @classmethod
    def validate_tick_size(cls, v: Any) -> Optional[Decimal]:
        """Convert tick_size to Decimal."""
        if v is None:
            return None
        return _decimal(v)


class SignedOrder(BaseModel):
    """
    Fully signed order, ready for submission.

    Immutable once produced.
    """
    model_config = ConfigDict(frozen=True)

    salt: int
    maker: str
    signer: str
    taker: str
    token_id: int
    maker_amount: int
    taker_amount: int
    expiration: int
    nonce: int
    fee_rate_bps: int
    side: Side
    signature_type: SignatureType
    signature: str

    def eip712_fields(self) -> dict[str, Any]:
        """Order values keyed by EIP-712 field names."""
        return {
            "salt": self.salt,
            "maker": self.maker,
            "signer": self.signer,
            "taker": self.taker,
            "tokenId": self.token_id,
            "makerAmount": self.maker_amount,
            "takerAmount": self.taker_amount,
            "expiration": self.expiration,
            "nonce": self.nonce,
            "feeRateBps": self.fee_rate_bps,
            "side": 0 if self.side == Side.BUY else 1,
            "signatureType": int(self.signature_type),
        }

    def to_dict(self) -> dict[str, str]:
        """
        JSON body of the order.

        Numeric fields are decimal strings so no precision is lost on the wire.
        """
        return {
            "salt": str(self.salt),
            "maker": self.maker,
            "signer": self.signer,
            "taker": self.taker,
            "tokenId": str(self.token_id),
            "makerAmount": str(self.maker_amount),
            "takerAmount": str(self.taker_amount),
            "expiration": str(self.expiration),
            "nonce": str(self.nonce),
            "feeRateBps": str(self.fee_rate_bps),
            "side": self.side.value,
            "signatureType": str(int(self.signature_type)),
            "signature": self.signature,
        }


# Response Models
class OrderSummary(BaseModel):
    """One price level of the order book."""
    price: Decimal
    size: Decimal

    @field_validator("price", "size", mode="before")
    @classmethod
    def validate_numeric(cls, v: Any) -> Decimal:
        """Convert numeric fields to Decimal."""
        return _decimal(v)


class OrderBookSummary(BaseModel):
    """Order book for a token, as returned by GET /book."""
    market: Optional[str] = None
    asset_id: Optional[str] = None
    timestamp: Optional[Any] = None
    bids: list[OrderSummary] = Field(default_factory=list)
    asks: list[OrderSummary] = Field(default_factory=list)


# Query parameters
class AssetType(str, Enum):
    """Asset kind for balance/allowance queries."""
    COLLATERAL = "COLLATERAL"
    CONDITIONAL = "CONDITIONAL"


class OpenOrderParams(BaseModel):
    """Filters for GET /data/orders."""
    id: Optional[str] = None
    asset_id: Optional[str] = None
    market: Optional[str] = None

    def to_query_params(self) -> dict[str, str]:
        return {k: str(v) for k, v in self.model_dump().items() if v is not None}


class TradeParams(BaseModel):
    """Filters for GET /data/trades."""
    id: Optional[str] = None
    maker_address: Optional[str] = None
    market: Optional[str] = None
    asset_id: Optional[str] = None
    before: Optional[int] = Field(None, description="Unix seconds")
    after: Optional[int] = Field(None, description="Unix seconds")

    def to_query_params(self) -> dict[str, str]:
        return {k: str(v) for k, v in self.model_dump().items() if v is not None}


class BalanceAllowanceParams(BaseModel):
    """Query for GET /balance-allowance."""
    asset_type: Optional[AssetType] = None
    token_id: Optional[str] = None
    signature_type: Optional[SignatureType] = None

    def to_query_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.asset_type is not None:
            params["asset_type"] = self.asset_type.value
        if self.token_id is not None:
            params["token_id"] = self.token_id
        if self.signature_type is not None:
            params["signature_type"] = str(int(self.signature_type))
        return params

"""
Order builder with EIP-712 signing.

Turns an order intent (token, side, price, size) into integer maker/taker
amounts, assembles the exchange's Order struct and signs its typed-data
digest.
Adapted from py-clob-client and python-order-utils (MIT License).
"""

import hashlib
import secrets
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_UP, ROUND_UP
from typing import Optional, Sequence
import logging

from eth_utils import to_checksum_address

from ..auth.eip712_models import exchange_domain, order_message
from ..config import get_contract_config
from ..models import (
    CreateOrderOptions,
    ExtraOrderArgs,
    MarketOrderArgs,
    OrderArgs,
    OrderSummary,
    Side,
    SignatureType,
    SignedOrder,
    SignerConfig,
)
from ..exceptions import InvalidOrderParameters, MissingFunderAddress
from ..signing.signer import Signer
from ..signing.typed_data import typed_data_digest
from ..utils.numeric import decimal_places, to_token_units
from .. import metrics

logger = logging.getLogger(__name__)


# Order constants (from py-clob-client)
BUY = 0
SELL = 1

# Base-unit precision of each side once amounts are final
USDC_DECIMALS = 2
TOKEN_AMOUNT_DECIMALS = 4


@dataclass(frozen=True)
class RoundConfig:
    """Decimal places allowed for price, size and the computed amount."""
    price: int
    size: int
    amount: int


ROUNDING_CONFIG: dict[Decimal, RoundConfig] = {
    Decimal("0.1"): RoundConfig(price=1, size=2, amount=3),
    Decimal("0.01"): RoundConfig(price=2, size=2, amount=4),
    Decimal("0.001"): RoundConfig(price=3, size=2, amount=5),
    Decimal("0.0001"): RoundConfig(price=4, size=2, amount=6),
}


def _quantize(value: Decimal, places: int, rounding: str) -> Decimal:
    try:
        return value.quantize(Decimal(10) ** -places, rounding=rounding)
    except InvalidOperation as e:
        raise InvalidOrderParameters(f"Value {value} cannot be rounded to {places} places") from e


def round_normal(value: Decimal, places: int) -> Decimal:
    """Round to nearest, ties away from zero."""
    return _quantize(value, places, ROUND_HALF_UP)


def round_down(value: Decimal, places: int) -> Decimal:
    """Truncate toward zero."""
    return _quantize(value, places, ROUND_DOWN)


def round_up(value: Decimal, places: int) -> Decimal:
    """Round away from zero."""
    return _quantize(value, places, ROUND_UP)


def fix_amount_rounding(amount: Decimal, config: RoundConfig) -> Decimal:
    """
    Bring a computed amount back to the tick's amount precision.

    Rounds up at amount+4 places first so values like 1.23449999 land on
    1.2345 instead of being truncated to 1.2344.
    """
    if decimal_places(amount) > config.amount:
        amount = round_up(amount, config.amount + 4)
        if decimal_places(amount) > config.amount:
            amount = round_down(amount, config.amount)
    return amount


def clamp_amount_precision(side: Side, maker: Decimal, taker: Decimal) -> tuple[Decimal, Decimal]:
    """USDC side to 2 places, token side to 4 places."""
    if side == Side.BUY:
        return round_normal(maker, USDC_DECIMALS), round_normal(taker, TOKEN_AMOUNT_DECIMALS)
    return round_normal(maker, TOKEN_AMOUNT_DECIMALS), round_normal(taker, USDC_DECIMALS)


def get_round_config(tick_size: Decimal) -> RoundConfig:
    """
    Rounding configuration for a tick size.

    Raises:
        InvalidOrderParameters: If the tick size is not supported
    """
    try:
        return ROUNDING_CONFIG[tick_size]
    except (KeyError, TypeError):
        raise InvalidOrderParameters(
            f"Unsupported tick size {tick_size}. Must be one of "
            f"{', '.join(str(t) for t in ROUNDING_CONFIG)}",
            field="tick_size",
            value=tick_size
        ) from None


def is_price_in_range(price: Decimal, tick_size: Decimal) -> bool:
    """Price must lie in [tick_size, 1 - tick_size]."""
    return tick_size <= price <= Decimal("1") - tick_size


def get_order_amounts(
    side: Side,
    size: Decimal,
    price: Decimal,
    config: RoundConfig
) -> tuple[int, int]:
    """
    Compute maker/taker amounts of a limit order in base units.

    BUY: pay size*price USDC (maker) for size tokens (taker).
    SELL: give size tokens (maker) for size*price USDC (taker).

    Examples:
        >>> get_order_amounts(Side.BUY, Decimal("10"), Decimal("0.1537"), ROUNDING_CONFIG[Decimal("0.001")])
        (1540000, 10000000)
    """
    raw_price = round_normal(price, config.price)
    raw_size = round_down(size, config.size)
    raw_amount = fix_amount_rounding(raw_size * raw_price, config)

    if side == Side.BUY:
        maker, taker = clamp_amount_precision(Side.BUY, raw_amount, raw_size)
    else:
        maker, taker = clamp_amount_precision(Side.SELL, raw_size, raw_amount)

    return to_token_units(maker), to_token_units(taker)


def get_market_order_amounts(
    amount: Decimal,
    price: Decimal,
    config: RoundConfig
) -> tuple[int, int]:
    """
    Compute maker/taker amounts of a market BUY in base units.

    Spends ``amount`` USDC (maker) for amount/price tokens (taker).
    """
    raw_maker = round_down(amount, config.size)
    raw_price = round_normal(price, config.price)
    if raw_price <= 0:
        raise InvalidOrderParameters(f"Price {price} rounds to zero", field="price", value=price)

    raw_taker = fix_amount_rounding(raw_maker / raw_price, config)
    maker, taker = clamp_amount_precision(Side.BUY, raw_maker, raw_taker)
    return to_token_units(maker), to_token_units(taker)


def calculate_market_price(levels: Sequence[OrderSummary], amount: Decimal) -> Decimal:
    """
    Price at which a market BUY of ``amount`` USDC is fully covered.

    Args:
        levels: Ask levels, best price first
        amount: USDC amount to match

    Returns:
        Price of the level that completes the fill

    Raises:
        InvalidOrderParameters: If the book does not hold enough liquidity
    """
    total = Decimal("0")
    for level in levels:
        total += level.size * level.price
        if total >= amount:
            return level.price

    raise InvalidOrderParameters(
        f"Not enough liquidity to create market order with amount {amount}",
        field="amount",
        value=amount
    )


class OrderBuilder:
    """
    Builds and signs orders for the CLOB.

    Handles:
    - Tick size dependent rounding of price, size and amounts
    - Signature type branching (EOA vs proxy/Safe funded orders)
    - Salt generation
    - EIP-712 signing
    """

    def __init__(
        self,
        signer: Signer,
        chain_id: int = 137,
        signer_config: Optional[SignerConfig] = None
    ):
        """
        Initialize order builder.

        Args:
            signer: Wallet signer (EOA)
            chain_id: Polygon chain ID (137 for mainnet)
            signer_config: Signature type and funder (default: EOA)
        """
        self.signer = signer
        self.chain_id = chain_id
        self.signer_config = signer_config or SignerConfig()

    @property
    def signature_type(self) -> SignatureType:
        return self.signer_config.signature_type

    def resolve_maker(self) -> str:
        """
        Address that funds the order.

        Raises:
            MissingFunderAddress: If a proxy signature type has no funder
            InvalidOrderParameters: If the funder address is invalid
        """
        signature_type = self.signer_config.signature_type
        funder = self.signer_config.funder

        if signature_type.uses_funder:
            if not funder:
                raise MissingFunderAddress(
                    f"Signature type {signature_type.name} requires a funder address",
                    signature_type=int(signature_type)
                )
            return _checksum(funder, "funder")

        if funder is not None and _checksum(funder, "funder").lower() != self.signer.address.lower():
            raise InvalidOrderParameters(
                "Funder address is only valid for proxy signature types",
                field="funder",
                value=funder
            )
        return self.signer.address

    def exchange_address(self, neg_risk: bool = False) -> str:
        """Verifying contract for this chain."""
        return get_contract_config(self.chain_id, neg_risk).exchange

    def create_order(
        self,
        order_args: OrderArgs,
        options: CreateOrderOptions,
        expiration: int = 0,
        extras: Optional[ExtraOrderArgs] = None,
        idempotency_key: Optional[str] = None
    ) -> SignedOrder:
        """
        Build and sign a limit order.

        Args:
            order_args: Token, price, size and side
            options: Tick size and neg-risk flag (both required)
            expiration: Unix seconds, 0 = no expiry
            extras: Fee rate, nonce, taker
            idempotency_key: Optional key for deterministic salt generation

        Returns:
            Signed order

        Raises:
            InvalidOrderParameters: If price, size or tick size is out of bounds
            MissingFunderAddress: If a proxy signature type has no funder
        """
        tick_size = self._require_tick_size(options)
        config = get_round_config(tick_size)

        if not is_price_in_range(order_args.price, tick_size):
            raise InvalidOrderParameters(
                f"Price {order_args.price} invalid for tick size {tick_size}. "
                f"Must be between {tick_size} and {Decimal('1') - tick_size}",
                field="price",
                value=order_args.price
            )
        if order_args.size <= 0:
            raise InvalidOrderParameters(
                f"Size must be positive, got {order_args.size}",
                field="size",
                value=order_args.size
            )

        maker_amount, taker_amount = get_order_amounts(
            order_args.side, order_args.size, order_args.price, config
        )

        return self.build_signed_order(
            token_id=order_args.token_id,
            side=order_args.side,
            maker_amount=maker_amount,
            taker_amount=taker_amount,
            expiration=expiration,
            extras=extras,
            neg_risk=bool(options.neg_risk),
            salt=self.generate_salt_from_key(idempotency_key)
        )

    def create_market_order(
        self,
        order_args: MarketOrderArgs,
        price: Decimal,
        options: CreateOrderOptions,
        extras: Optional[ExtraOrderArgs] = None,
        idempotency_key: Optional[str] = None
    ) -> SignedOrder:
        """
        Build and sign a market BUY order (no expiry).

        Args:
            order_args: Token and USDC amount
            price: Worst acceptable price (see calculate_market_price)
            options: Tick size and neg-risk flag
            extras: Fee rate, nonce, taker
            idempotency_key: Optional key for deterministic salt generation

        Returns:
            Signed order
        """
        tick_size = self._require_tick_size(options)
        config = get_round_config(tick_size)

        if not is_price_in_range(price, tick_size):
            raise InvalidOrderParameters(
                f"Price {price} invalid for tick size {tick_size}",
                field="price",
                value=price
            )
        if order_args.amount <= 0:
            raise InvalidOrderParameters(
                f"Amount must be positive, got {order_args.amount}",
                field="amount",
                value=order_args.amount
            )

        maker_amount, taker_amount = get_market_order_amounts(order_args.amount, price, config)

        return self.build_signed_order(
            token_id=order_args.token_id,
            side=Side.BUY,
            maker_amount=maker_amount,
            taker_amount=taker_amount,
            expiration=0,
            extras=extras,
            neg_risk=bool(options.neg_risk),
            salt=self.generate_salt_from_key(idempotency_key)
        )

    def build_signed_order(
        self,
        token_id: str,
        side: Side,
        maker_amount: int,
        taker_amount: int,
        expiration: int = 0,
        extras: Optional[ExtraOrderArgs] = None,
        neg_risk: bool = False,
        salt: Optional[int] = None
    ) -> SignedOrder:
        """
        Assemble the Order struct, sign its digest and return the signed order.

        EOA and proxy orders share the same digest computation; only the
        maker/signer fields differ.
        """
        extras = extras or ExtraOrderArgs()

        if maker_amount <= 0 or taker_amount <= 0:
            raise InvalidOrderParameters(
                f"Order amounts round to zero (maker={maker_amount}, taker={taker_amount})",
                field="size"
            )
        if expiration < 0:
            raise InvalidOrderParameters(
                f"Expiration must be >= 0, got {expiration}",
                field="expiration",
                value=expiration
            )

        unsigned = dict(
            salt=salt if salt is not None else self._generate_salt(),
            maker=self.resolve_maker(),
            signer=self.signer.address,
            taker=_checksum(extras.taker, "taker"),
            token_id=_parse_token_id(token_id),
            maker_amount=maker_amount,
            taker_amount=taker_amount,
            expiration=expiration,
            nonce=extras.nonce,
            fee_rate_bps=extras.fee_rate_bps,
            side=side,
            signature_type=self.signature_type,
        )

        # Sign the same field values that go into the payload
        draft = SignedOrder(**unsigned, signature="")
        digest = typed_data_digest(
            exchange_domain(self.chain_id, self.exchange_address(neg_risk)),
            order_message(draft.eip712_fields())
        )
        signed = draft.model_copy(update={"signature": self.signer.sign(digest).to_hex()})

        metrics.track_order_signed(signed.side.value, self.signature_type.name)
        logger.info(
            f"Built order: {signed.side.value} maker={maker_amount} taker={taker_amount} "
            f"(token={token_id}, signature_type={self.signature_type.name})"
        )
        return signed

    def order_digest(self, order: SignedOrder, neg_risk: bool = False) -> bytes:
        """Recompute the typed-data digest of an order."""
        return typed_data_digest(
            exchange_domain(self.chain_id, self.exchange_address(neg_risk)),
            order_message(order.eip712_fields())
        )

    def _require_tick_size(self, options: CreateOrderOptions) -> Decimal:
        if options.tick_size is None:
            raise InvalidOrderParameters("Cannot create order without tick size", field="tick_size")
        return options.tick_size

    def _generate_salt(self) -> int:
        """Generate random salt for order uniqueness."""
        return secrets.randbits(256)

    def generate_salt_from_key(self, idempotency_key: Optional[str]) -> int:
        """
        Generate deterministic salt from idempotency key.

        If idempotency_key is None, generates random salt.
        If provided, uses SHA-256 hash of key to generate deterministic 256-bit salt.

        Args:
            idempotency_key: Unique identifier (e.g., database UUID)
                           None for random salt

        Returns:
            256-bit integer salt
        """
        if idempotency_key is None:
            return self._generate_salt()

        hash_bytes = hashlib.sha256(idempotency_key.encode("utf-8")).digest()
        return int.from_bytes(hash_bytes, byteorder="big")


def _checksum(address: str, field: str) -> str:
    try:
        return to_checksum_address(address)
    except (ValueError, TypeError):
        raise InvalidOrderParameters(f"Invalid {field} address: {address}", field=field, value=address) from None


def _parse_token_id(token_id: str) -> int:
    token_id = str(token_id)
    if not (token_id.isascii() and token_id.isdigit()):
        raise InvalidOrderParameters(
            f"Token ID must be a decimal integer, got {token_id!r}",
            field="token_id",
            value=token_id
        )
    value = int(token_id)
    if value >= 2 ** 256:
        raise InvalidOrderParameters(
            f"Token ID does not fit in uint256: {token_id}",
            field="token_id",
            value=token_id
        )
    return value

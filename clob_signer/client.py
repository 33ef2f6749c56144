"""
Main CLOB client.

Unified interface over the signing core: API key management (L1),
order creation and signing, and authenticated trading calls (L2).
Thread-safe: one client may be shared by many threads.
"""

from typing import Optional, List, Dict, Any
from decimal import Decimal
import logging

from .config import get_settings, get_contract_config, ClobSettings
from .models import (
    ApiCredentials,
    BalanceAllowanceParams,
    CreateOrderOptions,
    ExtraOrderArgs,
    MarketOrderArgs,
    OpenOrderParams,
    OrderArgs,
    OrderBookSummary,
    OrderType,
    SignedOrder,
    SignerConfig,
    TradeParams,
)
from .auth.authenticator import Authenticator
from .auth.credentials import CredentialStore
from .api.clob import CLOBAPI
from .signing.signer import Signer
from .trading.order_builder import OrderBuilder, calculate_market_price, is_price_in_range
from .utils.cache import MarketMetadataCache
from .exceptions import APIError, AuthenticationError, InvalidOrderParameters
from .metrics import get_metrics

logger = logging.getLogger(__name__)


class ClobClient:
    """
    Client for the Polymarket CLOB.

    Features:
    - L1/L2 header routing per endpoint
    - Deterministic EIP-712 order signing (EOA, proxy and Safe wallets)
    - Atomically replaceable API credentials
    - Cached tick size / neg-risk lookups

    Usage:
        client = ClobClient(private_key=key, chain_id=137)
        client.create_or_derive_api_key()
        order = client.create_order(OrderArgs(token_id=tid, price="0.5", size="10", side=Side.BUY))
        client.post_order(order)
    """

    def __init__(
        self,
        private_key: Optional[str] = None,
        chain_id: Optional[int] = None,
        credentials: Optional[ApiCredentials] = None,
        signer_config: Optional[SignerConfig] = None,
        settings: Optional[ClobSettings] = None
    ):
        """
        Initialize CLOB client.

        Args:
            private_key: Wallet private key (hex). Without it only public endpoints work.
            chain_id: Chain ID (default: settings.chain_id)
            credentials: Existing API credentials (optional)
            signer_config: Signature type and funder for orders (default: EOA)
            settings: Optional settings (loads from env if not provided)

        Raises:
            SigningError: If the private key is malformed
            ConfigurationError: If the chain is not supported
        """
        self.settings = settings or get_settings()
        self.chain_id = chain_id if chain_id is not None else self.settings.chain_id

        # Fail fast on unsupported chains
        self.contracts = get_contract_config(self.chain_id)

        if self.settings.enable_metrics:
            get_metrics(enabled=True, port=self.settings.metrics_port)

        self.signer = Signer(private_key) if private_key else None
        self.credentials = CredentialStore(credentials)
        self.authenticator = Authenticator(chain_id=self.chain_id)
        self.metadata_cache = MarketMetadataCache(ttl=self.settings.metadata_cache_ttl)

        self.order_builder: Optional[OrderBuilder] = None
        if self.signer is not None:
            self.order_builder = OrderBuilder(
                signer=self.signer,
                chain_id=self.chain_id,
                signer_config=signer_config
            )

        self.clob = CLOBAPI(
            settings=self.settings,
            authenticator=self.authenticator,
            credentials=self.credentials,
            signer=self.signer
        )

        logger.info(
            f"ClobClient initialized (host={self.settings.host}, chain_id={self.chain_id}, "
            f"address={self.get_address()})"
        )

    def _require_order_builder(self) -> OrderBuilder:
        if self.order_builder is None:
            raise AuthenticationError("A private key is required to create orders")
        return self.order_builder

    # ========== Addresses ==========

    def get_address(self) -> Optional[str]:
        """Signer (EOA) address, or None for a public-only client."""
        return self.signer.address if self.signer is not None else None

    def get_exchange_address(self, neg_risk: bool = False) -> str:
        """Exchange contract (EIP-712 verifying contract for orders)."""
        return get_contract_config(self.chain_id, neg_risk).exchange

    def get_collateral_address(self) -> str:
        """Collateral (USDC) token contract."""
        return self.contracts.collateral

    def get_conditional_address(self) -> str:
        """Conditional tokens contract."""
        return self.contracts.conditional_tokens

    # ========== Public ==========

    def get_ok(self) -> bool:
        """Health check."""
        return self.clob.get_ok()

    def get_server_time(self) -> int:
        """Server unix timestamp (seconds)."""
        return self.clob.get_server_time()

    def get_order_book(self, token_id: str) -> OrderBookSummary:
        """Order book summary for a token."""
        return self.clob.get_order_book(token_id)

    # ========== Credentials (L1) ==========

    def set_api_creds(self, credentials: ApiCredentials) -> None:
        """Publish credentials for all subsequent L2 requests."""
        self.credentials.set(credentials)

    def get_api_creds(self) -> Optional[ApiCredentials]:
        """Current credentials."""
        return self.credentials.get()

    def create_api_key(self, nonce: Optional[int] = None) -> ApiCredentials:
        """
        Create a new API key and use it for L2 requests.

        Args:
            nonce: Auth nonce (default: 0)

        Returns:
            New credentials
        """
        credentials = self.clob.create_api_key(nonce)
        self.set_api_creds(credentials)
        return credentials

    def derive_api_key(self, nonce: Optional[int] = None) -> ApiCredentials:
        """
        Derive the existing API key for a nonce and use it for L2 requests.

        Args:
            nonce: Auth nonce (default: 0)

        Returns:
            Derived credentials
        """
        credentials = self.clob.derive_api_key(nonce)
        self.set_api_creds(credentials)
        return credentials

    def create_or_derive_api_key(self, nonce: Optional[int] = None) -> ApiCredentials:
        """
        Create an API key, deriving the existing one if creation is rejected.

        Each attempt signs fresh L1 headers.
        """
        try:
            return self.create_api_key(nonce)
        except APIError as e:
            logger.info(f"API key creation failed ({e.status_code}), deriving existing key")
            return self.derive_api_key(nonce)

    # ========== Account (L2) ==========

    def get_api_keys(self) -> List[str]:
        """API keys of this wallet."""
        return self.clob.get_api_keys()

    def delete_api_key(self) -> Any:
        """Revoke the API key in use and forget it locally."""
        response = self.clob.delete_api_key()
        self.credentials.clear()
        return response

    def get_balance_allowance(self, params: Optional[BalanceAllowanceParams] = None) -> Any:
        """
        Balance and allowance.

        The signature type defaults to the client's signer configuration.
        """
        return self.clob.get_balance_allowance(self._balance_params(params))

    def update_balance_allowance(self, params: Optional[BalanceAllowanceParams] = None) -> Any:
        """Refresh the server's cached balance and allowance."""
        return self.clob.update_balance_allowance(self._balance_params(params))

    def _balance_params(self, params: Optional[BalanceAllowanceParams]) -> BalanceAllowanceParams:
        params = params or BalanceAllowanceParams()
        if params.signature_type is None:
            params = params.model_copy(
                update={"signature_type": self._require_order_builder().signature_type}
            )
        return params

    # ========== Order creation ==========

    def _resolve_tick_size(self, token_id: str, tick_size: Optional[Decimal]) -> Decimal:
        """
        Market tick size, or the caller's if it is not finer than the market's.

        Raises:
            InvalidOrderParameters: If the caller's tick size is below the market minimum
        """
        min_tick_size = self.metadata_cache.tick_size(token_id, self.clob.get_tick_size)

        if tick_size is None:
            return min_tick_size
        if tick_size < min_tick_size:
            raise InvalidOrderParameters(
                f"Tick size {tick_size} is smaller than min_tick_size {min_tick_size} "
                f"for token_id: {token_id}",
                field="tick_size",
                value=tick_size
            )
        return tick_size

    def _resolve_neg_risk(self, token_id: str, neg_risk: Optional[bool]) -> bool:
        if neg_risk is not None:
            return neg_risk
        return self.metadata_cache.neg_risk(token_id, self.clob.get_neg_risk)

    def _fill_order_options(self, token_id: str, options: Optional[CreateOrderOptions]) -> CreateOrderOptions:
        options = options or CreateOrderOptions()
        return CreateOrderOptions(
            tick_size=self._resolve_tick_size(token_id, options.tick_size),
            neg_risk=self._resolve_neg_risk(token_id, options.neg_risk),
        )

    def create_order(
        self,
        order_args: OrderArgs,
        expiration: Optional[int] = None,
        extras: Optional[ExtraOrderArgs] = None,
        options: Optional[CreateOrderOptions] = None,
        idempotency_key: Optional[str] = None
    ) -> SignedOrder:
        """
        Create and sign a limit order.

        Args:
            order_args: Token, price, size and side
            expiration: Unix seconds (default: 0, no expiry)
            extras: Fee rate, nonce, taker
            options: Tick size / neg-risk overrides (fetched when missing)
            idempotency_key: Optional key for deterministic salt generation

        Returns:
            Signed order
        """
        builder = self._require_order_builder()
        filled = self._fill_order_options(order_args.token_id, options)
        return builder.create_order(
            order_args,
            filled,
            expiration=expiration or 0,
            extras=extras,
            idempotency_key=idempotency_key
        )

    def create_market_order(
        self,
        order_args: MarketOrderArgs,
        extras: Optional[ExtraOrderArgs] = None,
        options: Optional[CreateOrderOptions] = None,
        idempotency_key: Optional[str] = None
    ) -> SignedOrder:
        """
        Create and sign a market BUY order priced off the current asks.

        Raises:
            InvalidOrderParameters: If the book cannot fill the amount or the
                resulting price is outside the tick bounds
        """
        builder = self._require_order_builder()
        filled = self._fill_order_options(order_args.token_id, options)

        book = self.clob.get_order_book(order_args.token_id)
        asks = sorted(book.asks, key=lambda level: level.price)
        price = calculate_market_price(asks, order_args.amount)

        if not is_price_in_range(price, filled.tick_size):
            raise InvalidOrderParameters(
                f"Market price {price} is not in range of tick size {filled.tick_size}",
                field="price",
                value=price
            )

        return builder.create_market_order(
            order_args,
            price,
            filled,
            extras=extras,
            idempotency_key=idempotency_key
        )

    # ========== Orders (L2) ==========

    def post_order(self, order: SignedOrder, order_type: OrderType = OrderType.GTC) -> Any:
        """Submit a signed order."""
        return self.clob.post_order(order, order_type)

    def create_and_post_order(self, order_args: OrderArgs) -> Any:
        """Create, sign and submit a GTC limit order."""
        order = self.create_order(order_args)
        return self.post_order(order, OrderType.GTC)

    def cancel(self, order_id: str) -> Any:
        """Cancel one order."""
        return self.clob.cancel(order_id)

    def cancel_orders(self, order_ids: List[str]) -> Any:
        """Cancel several orders."""
        return self.clob.cancel_orders(order_ids)

    def cancel_all(self) -> Any:
        """Cancel every open order."""
        return self.clob.cancel_all()

    def cancel_market_orders(self, market: Optional[str] = None, asset_id: Optional[str] = None) -> Any:
        """Cancel open orders of a market and/or asset."""
        return self.clob.cancel_market_orders(market, asset_id)

    def get_orders(
        self,
        params: Optional[OpenOrderParams] = None,
        next_cursor: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Open orders (all pages)."""
        return self.clob.get_orders(params, next_cursor)

    def get_order(self, order_id: str) -> Dict[str, Any]:
        """One order by id."""
        return self.clob.get_order(order_id)

    def get_trades(
        self,
        params: Optional[TradeParams] = None,
        next_cursor: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Trade history (all pages)."""
        return self.clob.get_trades(params, next_cursor)

    # ========== Rewards and notifications (L2) ==========

    def is_order_scoring(self, order_id: str) -> bool:
        """Whether an order is scoring for liquidity rewards."""
        return self.clob.is_order_scoring(order_id)

    def are_orders_scoring(self, order_ids: List[str]) -> Dict[str, bool]:
        """Reward scoring for several orders."""
        return self.clob.are_orders_scoring(order_ids)

    def get_notifications(self) -> Any:
        """Notifications for the client's wallet type."""
        return self.clob.get_notifications(int(self._require_order_builder().signature_type))

    def drop_notifications(self, ids: List[str]) -> Any:
        """Mark notifications as read."""
        return self.clob.drop_notifications(ids)

    # ========== Lifecycle ==========

    def close(self) -> None:
        """Close HTTP session."""
        self.clob.close()

    def __enter__(self) -> "ClobClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ClobClient(chain_id={self.chain_id}, address={self.get_address()})"

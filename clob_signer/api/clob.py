"""
CLOB API client.

Every endpoint is routed to exactly one authentication level:
public (no headers), L1 (wallet signature, API key management) or
L2 (HMAC, trading and account queries).
Adapted from py-clob-client (MIT License).
"""

from typing import Optional, List, Dict, Any
from decimal import Decimal
import logging

from .base import BaseAPIClient
from ..auth.authenticator import Authenticator
from ..auth.credentials import CredentialStore
from ..config import ClobSettings
from ..models import (
    ApiCredentials,
    BalanceAllowanceParams,
    OpenOrderParams,
    OrderBookSummary,
    OrderType,
    SignedOrder,
    TradeParams,
)
from ..signing.signer import Signer
from ..exceptions import APIError, AuthenticationError
from ..utils.numeric import to_decimal

logger = logging.getLogger(__name__)

INITIAL_CURSOR = "MA=="
END_CURSOR = "LTE="


class CLOBAPI(BaseAPIClient):
    """
    CLOB API client for authentication, trading and account queries.

    L1 endpoints need a signer; L2 endpoints need a signer and credentials.
    Headers are rebuilt for every request.
    """

    def __init__(
        self,
        settings: ClobSettings,
        authenticator: Authenticator,
        credentials: CredentialStore,
        signer: Optional[Signer] = None
    ):
        """
        Initialize CLOB API client.

        Args:
            settings: Client settings
            authenticator: Builds L1/L2 headers
            credentials: Credential slot read by every L2 request
            signer: Wallet signer (None for a public-only client)
        """
        super().__init__(base_url=settings.host, settings=settings)
        self.authenticator = authenticator
        self.credentials = credentials
        self.signer = signer

    def _require_signer(self) -> Signer:
        if self.signer is None:
            raise AuthenticationError("A private key is required for authenticated endpoints")
        return self.signer

    def _l1_request(self, method: str, path: str, nonce: Optional[int] = None) -> Any:
        """Send a request authenticated with fresh L1 headers."""
        headers = self.authenticator.create_l1_headers(self._require_signer(), nonce)
        return self._make_request(method, path, headers=headers)

    def _l2_request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
        credentials: Optional[ApiCredentials] = None
    ) -> Any:
        """
        Send a request authenticated with fresh L2 headers.

        The signed path excludes the query string. The body is sent as the
        exact string that was signed.
        Pass ``credentials`` when the body itself depends on them, so the
        body and the headers come from the same snapshot.

        Raises:
            AuthenticationError: If the client has no signer
            CredentialsNotSet: If no credentials are set (before any I/O)
        """
        signer = self._require_signer()
        if credentials is None:
            credentials = self.credentials.require()

        headers, body_text = self.authenticator.create_l2_headers(
            signer, credentials, method, path, body
        )
        return self._make_request(method, path, headers=headers, params=params, body=body_text)

    def _paginate(self, path: str, params: Dict[str, str], next_cursor: Optional[str]) -> List[Any]:
        """Follow next_cursor until the end marker, signing each page."""
        cursor = next_cursor or INITIAL_CURSOR
        results: List[Any] = []

        while cursor != END_CURSOR:
            response = self._l2_request("GET", path, params={**params, "next_cursor": cursor})
            if not isinstance(response, dict) or "next_cursor" not in response:
                raise APIError(f"Invalid paginated response from GET {path}", response=response)

            results.extend(response.get("data") or [])
            cursor = response["next_cursor"]

        return results

    # ========== Public ==========

    def get_ok(self) -> bool:
        """Health check. True if the server answered."""
        try:
            self.get("/")
            return True
        except APIError as e:
            logger.warning(f"CLOB health check failed: {e}")
            return False

    def get_server_time(self) -> int:
        """Server unix timestamp (seconds)."""
        response = self.get("/time")
        if isinstance(response, dict):
            response = response.get("timestamp")
        if response is None:
            raise APIError("Server time response missing timestamp")
        return int(response)

    def get_tick_size(self, token_id: str) -> Decimal:
        """Minimum tick size of a token's market."""
        response = self.get("/tick-size", params={"token_id": token_id})
        tick_size = to_decimal(response.get("minimum_tick_size") if isinstance(response, dict) else None)
        if tick_size is None:
            raise APIError(f"Tick size response missing minimum_tick_size for {token_id}", response=response)
        return tick_size

    def get_neg_risk(self, token_id: str) -> bool:
        """Whether the token trades on the neg-risk exchange."""
        response = self.get("/neg-risk", params={"token_id": token_id})
        if not isinstance(response, dict) or "neg_risk" not in response:
            raise APIError(f"Neg-risk response missing neg_risk for {token_id}", response=response)
        return bool(response["neg_risk"])

    def get_order_book(self, token_id: str) -> OrderBookSummary:
        """Order book summary for a token."""
        response = self.get("/book", params={"token_id": token_id})
        return OrderBookSummary.model_validate(response)

    # ========== L1: API key management ==========

    def create_api_key(self, nonce: Optional[int] = None) -> ApiCredentials:
        """Create a new API key (POST /auth/api-key)."""
        return ApiCredentials.from_response(self._l1_request("POST", "/auth/api-key", nonce))

    def derive_api_key(self, nonce: Optional[int] = None) -> ApiCredentials:
        """Derive the existing API key for a nonce (GET /auth/derive-api-key)."""
        return ApiCredentials.from_response(self._l1_request("GET", "/auth/derive-api-key", nonce))

    # ========== L2: account ==========

    def get_api_keys(self) -> List[str]:
        """API keys of this wallet."""
        response = self._l2_request("GET", "/auth/api-keys")
        return list(response.get("apiKeys", [])) if isinstance(response, dict) else []

    def delete_api_key(self) -> Any:
        """
        Revoke the API key in use.

        Authenticated at L2: the server identifies the key to revoke from the
        POLY_API_KEY header, so the caller must hold that key.
        """
        return self._l2_request("DELETE", "/auth/api-key")

    def get_balance_allowance(self, params: BalanceAllowanceParams) -> Any:
        """Balance and allowance of collateral or a conditional token."""
        return self._l2_request("GET", "/balance-allowance", params=params.to_query_params())

    def update_balance_allowance(self, params: BalanceAllowanceParams) -> Any:
        """Ask the server to refresh its cached balance and allowance."""
        return self._l2_request("GET", "/balance-allowance/update", params=params.to_query_params())

    # ========== L2: orders ==========

    def post_order(self, order: SignedOrder, order_type: OrderType = OrderType.GTC) -> Any:
        """
        Submit a signed order.

        Body: {"order": ..., "owner": <api key>, "orderType": ...}
        """
        credentials = self.credentials.require()
        body = {
            "order": order.to_dict(),
            "owner": credentials.api_key,
            "orderType": OrderType(order_type).value,
        }
        response = self._l2_request("POST", "/order", body=body, credentials=credentials)
        logger.info(f"Order posted: {order.side.value} token={order.token_id} type={OrderType(order_type).value}")
        return response

    def cancel(self, order_id: str) -> Any:
        """Cancel one order."""
        return self._l2_request("DELETE", "/order", body={"orderID": order_id})

    def cancel_orders(self, order_ids: List[str]) -> Any:
        """Cancel several orders."""
        return self._l2_request("DELETE", "/orders", body=list(order_ids))

    def cancel_all(self) -> Any:
        """Cancel every open order of this wallet."""
        return self._l2_request("DELETE", "/cancel-all")

    def cancel_market_orders(self, market: Optional[str] = None, asset_id: Optional[str] = None) -> Any:
        """Cancel open orders of one market and/or asset."""
        body = {"market": market or "", "asset_id": asset_id or ""}
        return self._l2_request("DELETE", "/cancel-market-orders", body=body)

    def get_orders(
        self,
        params: Optional[OpenOrderParams] = None,
        next_cursor: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Open orders, all pages."""
        query = params.to_query_params() if params else {}
        return self._paginate("/data/orders", query, next_cursor)

    def get_order(self, order_id: str) -> Dict[str, Any]:
        """One order by id."""
        return self._l2_request("GET", f"/data/order/{order_id}")

    def get_trades(
        self,
        params: Optional[TradeParams] = None,
        next_cursor: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Trade history, all pages."""
        query = params.to_query_params() if params else {}
        return self._paginate("/data/trades", query, next_cursor)

    def is_order_scoring(self, order_id: str) -> bool:
        """Whether a resting order earns liquidity rewards."""
        response = self._l2_request("GET", "/order-scoring", params={"order_id": order_id})
        return bool(response.get("scoring", False)) if isinstance(response, dict) else False

    def are_orders_scoring(self, order_ids: List[str]) -> Dict[str, bool]:
        """Reward scoring for several orders, keyed by order id."""
        response = self._l2_request("POST", "/orders-scoring", body=list(order_ids))
        if not isinstance(response, dict):
            raise APIError("Invalid response from POST /orders-scoring", response=response)
        return {order_id: bool(scoring) for order_id, scoring in response.items()}

    # ========== L2: notifications ==========

    def get_notifications(self, signature_type: int) -> Any:
        """Notifications for the wallet behind ``signature_type``."""
        return self._l2_request("GET", "/notifications", params={"signature_type": str(signature_type)})

    def drop_notifications(self, ids: List[str]) -> Any:
        """Mark notifications as read."""
        return self._l2_request("DELETE", "/notifications", params={"ids": ",".join(ids)})

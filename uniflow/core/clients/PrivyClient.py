from __future__ import annotations

import base64
import json
import time
from typing import Any, Literal, NotRequired, Required, TypedDict

import httpx
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from loguru import logger

from uniflow.core.config import (
    get_privy_api_base_url,
    get_privy_app_id,
    get_privy_app_secret,
    get_privy_signer_private_key,
)
from uniflow.core.constants.base import DEFAULT_HTTP_TIMEOUT
from uniflow.core.errors import TransactionFailedError, ValidationError

IdType = Literal["telegram", "email", "wallet", "custom_auth"]

_AUTH_KEY_PREFIX = "wallet-auth:"

# id type -> (lookup path, body field)
_USER_LOOKUP: dict[str, tuple[str, str]] = {
    "telegram": ("/v1/users/telegram/telegram_user_id", "telegram_user_id"),
    "email": ("/v1/users/email/address", "address"),
    "wallet": ("/v1/users/wallet/address", "address"),
    "custom_auth": ("/v1/users/custom_auth/id", "custom_user_id"),
}


class PrivyLinkedAccount(TypedDict):
    type: Required[str]
    id: NotRequired[str]
    address: NotRequired[str]
    wallet_client: NotRequired[str]
    chain_type: NotRequired[str]


class PrivyUser(TypedDict):
    id: Required[str]
    created_at: NotRequired[int]
    linked_accounts: Required[list[PrivyLinkedAccount]]


class PrivyWallet(TypedDict):
    id: Required[str]
    address: Required[str]
    chain_type: Required[str]
    policy_ids: NotRequired[list[str]]


class PrivyPolicy(TypedDict):
    id: Required[str]
    version: Required[str]
    name: Required[str]
    chain_type: Required[str]
    owner_id: NotRequired[str | None]
    rules: Required[list[dict[str, Any]]]
    created_at: NotRequired[int]


def canonical_json(payload: Any) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def load_authorization_key(raw_key: str) -> ec.EllipticCurvePrivateKey:
    """Parse a Privy authorization key (``wallet-auth:`` + base64 PKCS8 DER)."""
    key = raw_key.strip()
    if key.startswith(_AUTH_KEY_PREFIX):
        key = key[len(_AUTH_KEY_PREFIX) :]
    try:
        private_key = serialization.load_der_private_key(
            base64.b64decode(key), password=None
        )
    except ValueError as exc:
        raise ValidationError("Invalid Privy authorization private key") from exc
    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise ValidationError("Privy authorization key must be a P-256 EC key")
    return private_key


def linked_account_for(id_type: str, external_id: str) -> dict[str, str]:
    if id_type == "telegram":
        return {"type": "telegram", "telegram_user_id": external_id}
    if id_type == "email":
        return {"type": "email", "address": external_id}
    if id_type == "wallet":
        return {"type": "wallet", "address": external_id, "chain_type": "ethereum"}
    if id_type == "custom_auth":
        return {"type": "custom_auth", "custom_user_id": external_id}
    raise ValidationError(f"Unsupported idType: {id_type}", {"idType": id_type})


def error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or body)
    return str(body)


class PrivyClient:
    def __init__(
        self,
        *,
        app_id: str | None = None,
        app_secret: str | None = None,
        authorization_private_key: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.app_id = app_id or get_privy_app_id()
        app_secret = app_secret or get_privy_app_secret()
        if not self.app_id or not app_secret:
            raise ValidationError(
                "Privy credentials not configured. Set privy.app_id and "
                "privy.app_secret in config.json (or PRIVY_APP_ID / PRIVY_APP_SECRET)."
            )
        self.base_url = (base_url or get_privy_api_base_url()).rstrip("/")
        self._authorization_key = authorization_private_key or (
            get_privy_signer_private_key()
        )
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=(self.app_id, app_secret),
            timeout=httpx.Timeout(DEFAULT_HTTP_TIMEOUT),
            transport=transport,
        )
        self.headers = {
            "Content-Type": "application/json",
            "privy-app-id": self.app_id,
        }

    async def close(self) -> None:
        await self.client.aclose()

    def authorization_signature(
        self, method: str, url: str, body: dict[str, Any]
    ) -> str:
        if not self._authorization_key:
            raise ValidationError(
                "Server signing configuration is missing (privy.signer_private_key)"
            )
        payload = {
            "version": 1,
            "method": method.upper(),
            "url": url,
            "body": body,
            "headers": {"privy-app-id": self.app_id},
        }
        private_key = load_authorization_key(self._authorization_key)
        signature = private_key.sign(
            canonical_json(payload).encode("utf-8"), ec.ECDSA(hashes.SHA256())
        )
        return base64.b64encode(signature).decode("ascii")

    async def _authed_request(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        sign: bool = False,
        allow_404: bool = False,
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        logger.debug(f"Making {method} request to {url}")
        start_time = time.time()

        headers = dict(self.headers)
        if sign:
            headers["privy-authorization-signature"] = self.authorization_signature(
                method, url, body or {}
            )
        content = canonical_json(body) if body is not None else None
        resp = await self.client.request(method, path, headers=headers, content=content)

        elapsed = time.time() - start_time
        if resp.status_code >= 400 and not (allow_404 and resp.status_code == 404):
            logger.warning(
                f"HTTP {resp.status_code} response for {method} {url} after {elapsed:.2f}s"
            )
        else:
            logger.debug(
                f"HTTP {resp.status_code} response for {method} {url} after {elapsed:.2f}s"
            )

        if allow_404 and resp.status_code == 404:
            return resp
        resp.raise_for_status()
        return resp

    async def get_policy(self, policy_id: str) -> PrivyPolicy:
        resp = await self._authed_request("GET", f"/v1/policies/{policy_id}")
        return resp.json()

    async def create_policy(self, definition: dict[str, Any]) -> PrivyPolicy:
        resp = await self._authed_request("POST", "/v1/policies", body=definition)
        return resp.json()

    async def find_user(self, id_type: str, external_id: str) -> PrivyUser | None:
        if id_type not in _USER_LOOKUP:
            raise ValidationError(f"Unsupported idType: {id_type}", {"idType": id_type})
        path, field = _USER_LOOKUP[id_type]
        resp = await self._authed_request(
            "POST", path, body={field: external_id}, allow_404=True
        )
        if resp.status_code == 404:
            return None
        return resp.json()

    async def create_user(self, id_type: str, external_id: str) -> PrivyUser:
        body = {"linked_accounts": [linked_account_for(id_type, external_id)]}
        resp = await self._authed_request("POST", "/v1/users", body=body)
        return resp.json()

    async def create_wallet(
        self, owner_user_id: str, signer_id: str, policy_ids: list[str]
    ) -> PrivyWallet:
        body = {
            "chain_type": "ethereum",
            "owner": {"user_id": owner_user_id},
            "additional_signers": [
                {"signer_id": signer_id, "override_policy_ids": list(policy_ids)}
            ],
        }
        resp = await self._authed_request("POST", "/v1/wallets", body=body)
        return resp.json()

    async def send_transaction(
        self,
        wallet_id: str,
        *,
        to: str,
        value: int | str,
        data: str | None,
        chain_id: int,
    ) -> str:
        """Submit through the custody boundary; any rejection raises once, unretried."""
        if isinstance(value, str) and value.startswith("0x"):
            hex_value = value
        else:
            hex_value = hex(int(value))
        body = {
            "method": "eth_sendTransaction",
            "caip2": f"eip155:{int(chain_id)}",
            "chain_type": "ethereum",
            "params": {
                "transaction": {"to": to, "value": hex_value, "data": data or "0x"}
            },
        }
        try:
            resp = await self._authed_request(
                "POST", f"/v1/wallets/{wallet_id}/rpc", body=body, sign=True
            )
        except httpx.HTTPStatusError as exc:
            message = error_message(exc.response)
            raise TransactionFailedError(
                message,
                {"status": exc.response.status_code, "walletId": wallet_id},
            ) from exc
        except httpx.HTTPError as exc:
            raise TransactionFailedError(
                f"Transaction submission failed: {exc}", {"walletId": wallet_id}
            ) from exc

        payload = resp.json()
        tx_hash = (payload.get("data") or {}).get("hash") or payload.get("hash")
        if not tx_hash:
            raise TransactionFailedError(
                "Privy response did not include a transaction hash",
                {"walletId": wallet_id},
            )
        logger.info(f"Transaction submitted on eip155:{chain_id}: {tx_hash}")
        return str(tx_hash)

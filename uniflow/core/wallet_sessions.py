from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from loguru import logger

from uniflow.core.clients.PrivyClient import PrivyClient, PrivyUser
from uniflow.core.config import get_privy_signer_id
from uniflow.core.errors import (
    PolicyInitializationError,
    SessionNotFoundError,
    ValidationError,
)
from uniflow.policies.engine import PolicyEngine


@dataclass(frozen=True)
class SessionData:
    user_id: str
    wallet_id: str
    wallet_address: str


@dataclass(frozen=True)
class ConnectResult:
    session: SessionData
    is_new_user: bool


def _embedded_wallet(user: PrivyUser) -> dict[str, Any] | None:
    for account in user.get("linked_accounts") or []:
        if (
            account.get("type") == "wallet"
            and account.get("wallet_client") == "privy"
            and isinstance(account.get("id"), str)
        ):
            return dict(account)
    return None


class WalletSessions:
    """In-memory map of external identity -> custodial wallet session."""

    def __init__(
        self,
        client: PrivyClient,
        policy: PolicyEngine,
        *,
        signer_id: str | None = None,
    ):
        self.client = client
        self.policy = policy
        self.signer_id = signer_id or get_privy_signer_id()
        self._sessions: dict[str, SessionData] = {}
        self.logger = logger.bind(component="WalletSessions")

    async def connect(
        self, external_user_id: str, id_type: str = "telegram"
    ) -> ConnectResult:
        if not external_user_id:
            raise ValidationError("external user id is required")
        self.logger.info(f"Connecting wallet for {id_type} user {external_user_id}")

        user = await self.client.find_user(id_type, external_user_id)
        is_new_user = user is None
        if user is None:
            user = await self.client.create_user(id_type, external_user_id)
            self.logger.info(f"Created Privy user {user['id']}")

        wallet = _embedded_wallet(user)
        if wallet is None:
            # wallet creation attaches the active policy ids
            self.policy.require_active()
            if not self.signer_id:
                raise PolicyInitializationError(
                    "PRIVY_SIGNER_ID not configured; cannot attach server signer"
                )
            wallet = await self.client.create_wallet(
                user["id"], self.signer_id, self.policy.policy_ids
            )
            self.logger.info(f"Created wallet {wallet['id']} ({wallet['address']})")
        else:
            self.logger.info(f"Using existing embedded wallet {wallet['id']}")

        session = SessionData(
            user_id=user["id"],
            wallet_id=str(wallet["id"]),
            wallet_address=str(wallet["address"]),
        )
        self._sessions[external_user_id] = session
        return ConnectResult(session=session, is_new_user=is_new_user)

    def get_session(self, external_user_id: str) -> SessionData | None:
        return self._sessions.get(external_user_id)

    def require_session(self, external_user_id: str) -> SessionData:
        session = self._sessions.get(external_user_id)
        if session is None:
            raise SessionNotFoundError(
                f"No wallet session for user {external_user_id}; connect first",
                {"userId": external_user_id},
            )
        return session

    async def transact(
        self,
        external_user_id: str,
        *,
        to: str,
        value: int | str = 0,
        data: str | None = None,
        chain_id: int = 1,
    ) -> str:
        self.policy.require_active()
        session = self.require_session(external_user_id)
        self.logger.info(
            f"Sending transaction on eip155:{chain_id} for wallet {session.wallet_id}"
        )
        return await self.client.send_transaction(
            session.wallet_id, to=to, value=value, data=data, chain_id=chain_id
        )

    def disconnect(self, external_user_id: str) -> SessionData | None:
        self.logger.info(f"Disconnecting user {external_user_id}")
        return self._sessions.pop(external_user_id, None)

    def clear_all_sessions(self) -> None:
        self.logger.info(f"Clearing all sessions ({len(self._sessions)} active)")
        self._sessions.clear()

"""
Re-authentication boundary.

Irreversible operations ask the account owner to confirm their password
before running. The check is a password grant against the auth service;
any failure (wrong password, unreachable service) counts as "not confirmed".
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from recibofast.config import settings

logger = logging.getLogger(__name__)


class Authenticator(ABC):
    @abstractmethod
    async def verify_password(self, password: str) -> bool:
        ...


class SupabasePasswordAuthenticator(Authenticator):
    def __init__(
        self,
        auth_url: str = settings.AUTH_URL,
        email: str = settings.ACCOUNT_EMAIL,
        api_key: str = settings.SECONDARY_API_KEY,
        timeout: float = settings.REMOTE_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.email = email
        self.configured = bool(auth_url and email)
        self.client = client or httpx.AsyncClient(base_url=auth_url, timeout=timeout)
        self.client.headers.update({"apikey": api_key, "Content-Type": "application/json"})

    async def verify_password(self, password: str) -> bool:
        if not self.configured or not password:
            return False
        try:
            response = await self.client.post(
                "/auth/v1/token",
                params={"grant_type": "password"},
                json={"email": self.email, "password": password},
            )
        except httpx.HTTPError as e:
            logger.warning("Re-authentication request failed: %s", e)
            return False
        if not response.is_success:
            logger.info("Re-authentication rejected (HTTP %d)", response.status_code)
        return response.is_success

    async def aclose(self) -> None:
        await self.client.aclose()

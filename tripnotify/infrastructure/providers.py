"""
Push providers
==============

* ``FCMProvider``       -- Firebase Cloud Messaging HTTP v1.  Authenticates
  with a service account (OAuth2 bearer token via ``google-auth``) and sends
  one ``messages:send`` request per device token, concurrently.
* ``OneSignalProvider`` -- OneSignal REST API.  One request addresses every
  player id; the response lists the ids it could not deliver to.

``build_provider`` picks one from the settings and raises
``ConfigurationMissing`` when its credentials are not usable.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional, Sequence

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from .push import PushMessage, PushProvider
from tripnotify.config import Settings
from tripnotify.domain.entities import DeliveryResult
from tripnotify.domain.errors import ConfigurationMissing, DispatchFailure

logger = logging.getLogger(__name__)

FCM_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"
FCM_SEND_URL = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"
ONESIGNAL_API_URL = "https://onesignal.com/api/v1/notifications"


class FCMProvider(PushProvider):
    name = "fcm"

    def __init__(
        self,
        project_id: str,
        credentials: Any,
        channel_id: str = "taxi_app_channel",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.project_id = project_id
        self.credentials = credentials
        self.channel_id = channel_id
        self.url = FCM_SEND_URL.format(project_id=project_id)
        self.client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_service_account_info(
        cls, info: dict, **kwargs: Any
    ) -> "FCMProvider":
        credentials = service_account.Credentials.from_service_account_info(
            info, scopes=[FCM_SCOPE]
        )
        return cls(info["project_id"], credentials, **kwargs)

    async def _access_token(self) -> str:
        if not self.credentials.valid:
            try:
                # google-auth refresh is blocking
                await asyncio.to_thread(self.credentials.refresh, GoogleAuthRequest())
            except GoogleAuthError as exc:
                raise DispatchFailure(f"FCM token refresh failed: {exc}") from exc
        return self.credentials.token

    def _build_message(self, token: str, message: PushMessage) -> dict:
        return {
            "message": {
                "token": token,
                "notification": {"title": message.title, "body": message.body},
                # FCM data values must be strings
                "data": {k: str(v) for k, v in message.data.items()},
                "android": {
                    "priority": "high",
                    "notification": {
                        "channel_id": self.channel_id,
                        "sound": "default",
                    },
                },
            }
        }

    async def _send_one(
        self, token: str, message: PushMessage, access_token: str
    ) -> DeliveryResult:
        try:
            response = await self.client.post(
                self.url,
                json=self._build_message(token, message),
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as exc:
            return DeliveryResult(token, False, f"transport error: {exc}")

        if response.status_code == 200:
            return DeliveryResult(token, True)
        return DeliveryResult(token, False, _fcm_error(response))

    async def send(
        self, handles: Sequence[str], message: PushMessage
    ) -> list[DeliveryResult]:
        access_token = await self._access_token()
        return list(
            await asyncio.gather(
                *(self._send_one(h, message, access_token) for h in handles)
            )
        )

    async def aclose(self) -> None:
        await self.client.aclose()


def _fcm_error(response: httpx.Response) -> str:
    try:
        error = response.json().get("error", {})
        return f"{response.status_code} {error.get('status', '')}: {error.get('message', '')}"
    except ValueError:
        return f"{response.status_code} {response.text[:200]}"


class OneSignalProvider(PushProvider):
    name = "onesignal"

    def __init__(
        self,
        app_id: str,
        api_key: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.app_id = app_id
        self.api_key = api_key
        self.client = client or httpx.AsyncClient(timeout=timeout)

    def _get_headers(self) -> dict:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Basic {self.api_key}",
        }

    async def send(
        self, handles: Sequence[str], message: PushMessage
    ) -> list[DeliveryResult]:
        payload = {
            "app_id": self.app_id,
            "include_player_ids": list(handles),
            "headings": {"en": message.title},
            "contents": {"en": message.body},
            "data": message.data,
            "priority": 10,
        }
        try:
            response = await self.client.post(
                ONESIGNAL_API_URL, json=payload, headers=self._get_headers()
            )
        except httpx.HTTPError as exc:
            raise DispatchFailure(f"OneSignal transport error: {exc}") from exc

        if response.status_code != 200:
            raise DispatchFailure(
                f"OneSignal API error: {response.status_code} {response.text[:200]}"
            )

        try:
            result = response.json()
        except ValueError as exc:
            raise DispatchFailure(
                f"OneSignal returned non-JSON response: {response.text[:200]}"
            ) from exc
        errors = result.get("errors")
        if isinstance(errors, list) and errors and not result.get("id"):
            # Nothing was queued, e.g. "All included players are not subscribed"
            reason = "; ".join(str(e) for e in errors)
            return [DeliveryResult(h, False, reason) for h in handles]

        invalid = set()
        if isinstance(errors, dict):
            invalid = set(errors.get("invalid_player_ids") or [])
        return [
            DeliveryResult(h, False, "invalid player id")
            if h in invalid
            else DeliveryResult(h, True)
            for h in handles
        ]

    async def aclose(self) -> None:
        await self.client.aclose()


def build_provider(settings: Settings) -> PushProvider:
    """Create the configured provider or raise ``ConfigurationMissing``."""
    provider = settings.push_provider.lower()

    if provider == "fcm":
        if not settings.firebase_service_account:
            raise ConfigurationMissing("FIREBASE_SERVICE_ACCOUNT is not set")
        try:
            info = json.loads(settings.firebase_service_account)
        except ValueError as exc:
            raise ConfigurationMissing(
                f"FIREBASE_SERVICE_ACCOUNT is not valid JSON: {exc}"
            ) from exc
        if not isinstance(info, dict) or not info.get("project_id"):
            raise ConfigurationMissing("FIREBASE_SERVICE_ACCOUNT has no project_id")
        try:
            return FCMProvider.from_service_account_info(
                info,
                channel_id=settings.android_channel_id,
                timeout=settings.push_timeout_seconds,
            )
        except (ValueError, KeyError) as exc:
            raise ConfigurationMissing(f"Invalid Firebase service account: {exc}") from exc

    if provider == "onesignal":
        if not settings.onesignal_app_id or not settings.onesignal_api_key:
            raise ConfigurationMissing(
                "ONESIGNAL_APP_ID and ONESIGNAL_API_KEY must both be set"
            )
        return OneSignalProvider(
            settings.onesignal_app_id,
            settings.onesignal_api_key,
            timeout=settings.push_timeout_seconds,
        )

    raise ConfigurationMissing(f"Unknown push provider: {settings.push_provider!r}")

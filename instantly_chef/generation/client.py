"""
Menu generation client.

Two-phase protocol with the external workflow:

1. submit_generation_request() POSTs the snapshot with a fresh correlation id
   and a callback URL, and returns as soon as the webhook accepts it.
2. The workflow later POSTs results to the callback (handle_callback), and
   the UI polls poll_result() with the correlation id.

There are no automatic retries here; the caller owns retry and backoff.
"""

import logging
import uuid
from typing import Any, Dict, Optional, Union

import requests
from pydantic import ValidationError

from instantly_chef.config import DIAGNOSTIC_BODY_LIMIT, Settings
from instantly_chef.errors import (
    GenerationConfigError,
    GenerationTransportError,
    InvalidCallbackError,
    UpstreamRejectedError,
)
from instantly_chef.generation.payload import CallbackPayload, GenerationPayload

logger = logging.getLogger(__name__)

PENDING = {"status": "pending"}


class MenuGenerationClient:
    """Submits generation requests and tracks their results."""

    def __init__(self, settings: Settings, store=None, session: Optional[requests.Session] = None):
        """
        Args:
            settings: Webhook URL, callback base and timeout
            store: DatabaseInterface holding requests and results (optional)
            session: requests.Session to send with (a new one if omitted)
        """
        self.settings = settings
        self.store = store
        self.session = session or requests.Session()

    def _check_config(self):
        if not self.settings.n8n_webhook_url:
            raise GenerationConfigError("N8N_WEBHOOK_URL is not set")
        if not self.settings.callback_url:
            raise GenerationConfigError("PUBLIC_BASE_URL is not set; cannot build callback URL")

    def submit_generation_request(
        self,
        payload: Union[GenerationPayload, Dict[str, Any]],
        user_key: Optional[str] = None,
    ) -> Dict[str, str]:
        """
        Send one generation request to the workflow webhook.

        Args:
            payload: GenerationPayload (or a dict that validates as one)
            user_key: Owner of the request, recorded with the correlation id

        Returns:
            {"correlationId": ..., "status": "accepted"}

        Raises:
            GenerationConfigError: Webhook or callback address missing (nothing sent)
            UpstreamRejectedError: Webhook answered with a non-2xx status
            GenerationTransportError: Request could not be sent
        """
        self._check_config()

        if not isinstance(payload, GenerationPayload):
            payload = GenerationPayload.model_validate(payload)

        correlation_id = str(uuid.uuid4())
        body = payload.model_dump(by_alias=True)
        body["correlationId"] = correlation_id
        body["callbackUrl"] = self.settings.callback_url

        try:
            response = self.session.post(
                self.settings.n8n_webhook_url,
                json=body,
                timeout=self.settings.request_timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Generation submit failed for {correlation_id}: {e}", exc_info=True)
            raise GenerationTransportError(cause=e) from e

        if not response.ok:
            details = (response.text or "")[:DIAGNOSTIC_BODY_LIMIT]
            logger.warning(f"Workflow rejected {correlation_id} with status {response.status_code}")
            raise UpstreamRejectedError(response.status_code, details)

        if self.store is not None:
            self.store.record_generation_request(correlation_id, user_key)

        logger.info(f"Submitted generation request {correlation_id}")
        return {"correlationId": correlation_id, "status": "accepted"}

    def poll_result(self, correlation_id: str) -> Dict[str, Any]:
        """Return the stored result for a correlation id, or {"status": "pending"}."""
        if self.store is None:
            return dict(PENDING)
        result = self.store.get_generation_result(correlation_id)
        if result is None:
            return dict(PENDING)
        return result.to_dict()

    def handle_callback(self, data: Any) -> bool:
        """
        Store menus delivered by the workflow.

        Unknown correlation ids and repeat deliveries are ignored.

        Args:
            data: Decoded JSON body {correlationId, status, menus}

        Returns:
            True if the result was stored, False if it was ignored

        Raises:
            InvalidCallbackError: Body is missing correlationId or a menu is malformed
        """
        try:
            callback = CallbackPayload.model_validate(data if isinstance(data, dict) else {})
        except ValidationError as e:
            raise InvalidCallbackError("bad payload") from e

        if self.store is None:
            logger.info(f"No result store; ignoring callback for {callback.correlation_id}")
            return False

        stored = self.store.save_generation_result(
            callback.correlation_id, callback.status, callback.menus_to_store()
        )
        if stored:
            logger.info(f"Stored {len(callback.menus)} menus for {callback.correlation_id}")
        else:
            logger.info(f"Ignored callback for unknown or completed request {callback.correlation_id}")
        return stored

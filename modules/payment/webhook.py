"""
Payment Module - Webhook Signatures
=====================================
Dodo Payments signs deliveries with the Standard Webhooks scheme
(`webhook-id` / `webhook-timestamp` / `webhook-signature` headers, v1
HMAC-SHA256 over "{id}.{timestamp}.{body}" keyed by the base64 part of the
`whsec_...` secret). Verification is delegated to the `standardwebhooks`
library, which also enforces its 5 minute timestamp window.
"""

import json
import logging
from typing import Any, Dict, Mapping

from standardwebhooks.webhooks import Webhook, WebhookVerificationError

from common.exceptions import ConfigurationError, ValidationError, WebhookAuthError

logger = logging.getLogger("digitalhub.webhook")


def get_verifier(secret: str) -> Webhook:
    try:
        return Webhook(secret)
    except (ValueError, RuntimeError) as e:
        logger.error(f"Webhook secret could not be loaded: {e}")
        raise ConfigurationError("DODO_WEBHOOK_KEY is not a valid webhook secret")


def verify_delivery(secret: str, headers: Mapping[str, str], body: bytes) -> Dict[str, Any]:
    """
    Verify one delivery and return its parsed JSON payload.

    Raises:
        ConfigurationError: secret is not a valid `whsec_` key
        WebhookAuthError: no v1 candidate matches, or timestamp out of window
        ValidationError: body is not UTF-8 JSON
    """
    verifier = get_verifier(secret)
    webhook_id = headers.get("webhook-id")
    try:
        return verifier.verify(body, dict(headers.items()))
    except WebhookVerificationError as e:
        logger.error(f"Invalid webhook signature for {webhook_id}: {e}")
        raise WebhookAuthError()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON payload")
    except ValueError as e:
        # malformed signature header (no "version,sig" pair or bad base64)
        logger.error(f"Malformed webhook signature for {webhook_id}: {e}")
        raise WebhookAuthError()

"""Register and remove the Linear webhook that feeds the receiver."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Sequence

from tasksync.auth.credentials import CredentialStore
from tasksync.contracts.exceptions import ConfigurationError
from tasksync.contracts.linear import LinearWebhook, WebhookCreateInput
from tasksync.providers.linear.client import LinearClient

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "tasksync"
DEFAULT_RESOURCE_TYPES = ("Issue",)


def generate_secret() -> str:
    return secrets.token_hex(32)


async def register_webhook(
    client: LinearClient,
    credentials: CredentialStore,
    url: str,
    *,
    team_id: str | None = None,
    label: str = DEFAULT_LABEL,
    resource_types: Sequence[str] = DEFAULT_RESOURCE_TYPES,
    secret: str | None = None,
) -> LinearWebhook:
    """Create a webhook delivering to *url* and remember its id, secret and url.

    Without *team_id* the webhook covers all public teams.
    """
    secret = secret or generate_secret()
    webhook = await client.create_webhook(
        WebhookCreateInput(
            url=url,
            team_id=team_id,
            label=label,
            secret=secret,
            resource_types=list(resource_types),
            all_public_teams=None if team_id else True,
        )
    )
    credentials.set_webhook(webhook_id=webhook.id, secret=secret, url=webhook.url or url)
    logger.info("Registered Linear webhook %s for %s", webhook.id, url)
    return webhook


async def delete_webhook(
    client: LinearClient,
    credentials: CredentialStore,
    webhook_id: str | None = None,
) -> bool:
    """Delete *webhook_id* (default: the stored webhook).

    Stored webhook settings are cleared only when the stored webhook was deleted.

    Raises:
        ConfigurationError: If no id is given and none is stored.
    """
    stored_id = credentials.load().webhook_id
    webhook_id = webhook_id or stored_id
    if not webhook_id:
        raise ConfigurationError("No webhook is registered")

    deleted = await client.delete_webhook(webhook_id)
    if deleted and webhook_id == stored_id:
        credentials.clear_webhook()
    if deleted:
        logger.info("Deleted Linear webhook %s", webhook_id)
    else:
        logger.warning("Linear did not delete webhook %s", webhook_id)
    return deleted

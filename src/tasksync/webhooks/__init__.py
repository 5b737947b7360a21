"""Webhook receiver and registration."""

from tasksync.webhooks.registration import delete_webhook, register_webhook
from tasksync.webhooks.server import WebhookReceiver
from tasksync.webhooks.signature import compute_signature, verify_signature

__all__ = ["WebhookReceiver", "compute_signature", "delete_webhook", "register_webhook", "verify_signature"]

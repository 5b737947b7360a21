"""webhook serve | register | delete."""

from __future__ import annotations

import argparse

from tasksync.cli.common import CliContext
from tasksync.webhooks.registration import delete_webhook, register_webhook
from tasksync.webhooks.server import WebhookReceiver


def build_receiver(args: argparse.Namespace, ctx: CliContext) -> WebhookReceiver:
    settings = ctx.settings
    return WebhookReceiver(
        ctx.engine(),
        secret=args.secret or ctx.credentials.webhook_secret,
        host=args.host or settings.webhook_host,
        port=args.port or settings.webhook_port,
        path=settings.webhook_path,
    )


async def run_serve(args: argparse.Namespace, ctx: CliContext) -> int:
    ctx.require_token()
    receiver = build_receiver(args, ctx)
    print(f"Listening for Linear webhooks on {receiver.url} (Ctrl+C to stop)")
    await receiver.serve_forever()
    return 0


async def run_register(args: argparse.Namespace, ctx: CliContext) -> int:
    async with ctx.client() as client:
        webhook = await register_webhook(client, ctx.credentials, args.url, team_id=args.team, label=args.label)
    print(f"Registered webhook {webhook.id} -> {webhook.url or args.url}")
    return 0


async def run_delete(args: argparse.Namespace, ctx: CliContext) -> int:
    async with ctx.client() as client:
        deleted = await delete_webhook(client, ctx.credentials, args.webhook_id)
    if not deleted:
        print("Linear did not delete the webhook")
        return 4
    print("Webhook deleted")
    return 0


__all__ = ["build_receiver", "run_delete", "run_register", "run_serve"]

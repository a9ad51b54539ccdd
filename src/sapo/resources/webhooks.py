from .base import CrudResource


class Webhooks(CrudResource):
    """Webhook subscriptions. Verify deliveries with client.verify_webhook_payload."""

    path = "webhooks"
    singular = "webhook"

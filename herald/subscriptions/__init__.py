"""Channel subscriptions to repositories."""

from herald.subscriptions.store import SubscriberLookup, SubscriptionStore

__all__ = ["SubscriberLookup", "SubscriptionStore"]

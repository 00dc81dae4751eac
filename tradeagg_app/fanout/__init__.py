"""
Notification fanout.

Delivers accepted trades to every registered subscriber, each on its own
worker so one slow or broken subscriber cannot hold up the others.
"""
from .dispatcher import TradeDispatcher
from .notifier import NotificationFanout
from .subscription import Subscription, SubscriptionHandle

__all__ = ["NotificationFanout", "Subscription", "SubscriptionHandle", "TradeDispatcher"]

from .account import Account
from .notification import Notification
from .payment import PaymentTransaction
from .plan import Plan
from .subscription import Subscription

__all__ = [
    "Account",
    "Notification",
    "PaymentTransaction",
    "Plan",
    "Subscription",
]

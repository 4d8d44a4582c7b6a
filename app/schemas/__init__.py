from .pagseguro import (
    CardData,
    Customer,
    GatewayError,
    GatewayResult,
    GatewayTransaction,
)
from .payment import (
    CreateBoletoPaymentRequest,
    CreateCardPaymentRequest,
    CreatePixPaymentRequest,
    SubscriptionResponse,
    TransactionResponse,
)

__all__ = [
    "CardData",
    "CreateBoletoPaymentRequest",
    "CreateCardPaymentRequest",
    "CreatePixPaymentRequest",
    "Customer",
    "GatewayError",
    "GatewayResult",
    "GatewayTransaction",
    "SubscriptionResponse",
    "TransactionResponse",
]

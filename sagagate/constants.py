"""Queue names and fixed lifetimes shared across sagagate."""

ORDER_INITIATION_QUEUE = "order_initiation_queue"
PAYMENT_COMMAND_QUEUE = "payment_command_queue"
SHIPPING_COMMAND_QUEUE = "shipping_command_queue"
PAYMENT_COMPLETED_QUEUE = "payment_completed_queue"
SHIPPING_COMPLETED_QUEUE = "shipping_completed_queue"

ALL_QUEUES = (
    ORDER_INITIATION_QUEUE,
    PAYMENT_COMMAND_QUEUE,
    SHIPPING_COMMAND_QUEUE,
    PAYMENT_COMPLETED_QUEUE,
    SHIPPING_COMPLETED_QUEUE,
)

AUTHORIZATION_CODE_TTL = 10 * 60
ACCESS_TOKEN_TTL = 24 * 60 * 60
CLAIMS_TTL = 24 * 60 * 60

DEFAULT_SCOPE = "read"
SERVICE_SCOPE = "read write"
ADMIN_SCOPE = "admin"

DEFAULT_SERVICE_NAME = "orchestrator-service"

"""
dispatcher.py — Notification Fan-Out after a Committed Order

Sends the order details to the HTTP processor and the order items to the
reservation queue. Each channel runs in its own error boundary: a failure is
logged and recorded in the returned `DispatchReport`, never raised. The order
is already committed when this runs, so notifications are best effort with a
single attempt per channel.
"""

from .clients import OrderDetailsProcessorClient, OrderItemsReserverPublisher
from .logging_config import get_logger
from .models import DispatchReport

log = get_logger(__name__)


class NotificationDispatcher:
    def __init__(self, details_client: OrderDetailsProcessorClient, items_publisher: OrderItemsReserverPublisher):
        self.details_client = details_client
        self.items_publisher = items_publisher

    def dispatch(self, order_details: str, order_items: str, log_prefix: str = "") -> DispatchReport:
        """
        Delivers both payloads, HTTP first, then the queue.

        Args:
            order_details (str): JSON text for the order details processor.
            order_items (str): JSON text for the order items reserver.
            log_prefix (str): Prefix for log lines, e.g. "[Basket: 7]".

        Returns:
            DispatchReport: Which channels delivered successfully.
        """
        http_delivered = self._send_order_details(order_details, log_prefix)
        queue_delivered = self._publish_order_items(order_items, log_prefix)
        return DispatchReport(http_delivered=http_delivered, queue_delivered=queue_delivered)

    def _send_order_details(self, order_details, log_prefix) -> bool:
        try:
            self.details_client.post_order_details(order_details)
            return True
        except Exception as e:
            log.warning(f"{log_prefix} Order details notification failed, order stays committed: {e}")
            return False

    def _publish_order_items(self, order_items, log_prefix) -> bool:
        try:
            self.items_publisher.publish(order_items)
            return True
        except Exception as e:
            log.warning(f"{log_prefix} Order items notification failed, order stays committed: {e}")
            return False

    def close(self):
        self.details_client.close()

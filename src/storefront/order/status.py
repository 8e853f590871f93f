"""Order status updates — command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import OrderNotFound
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(max_length=50)


@storefront.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_id(command.order_id)
        if order is None:
            raise OrderNotFound(command.order_id)

        previous = order.status
        if order.transition_to(command.status):
            repo.add(order)
            logger.info(
                "order_status_changed",
                order_id=str(order.id),
                previous_status=previous,
                new_status=order.status,
            )
        return order.status

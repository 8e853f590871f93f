"""Repository for the Order aggregate."""

from storefront.domain import storefront
from storefront.order.order import Order


def _newest_first(orders):
    return sorted(orders, key=lambda o: o.created_at, reverse=True)


@storefront.repository(part_of=Order)
class OrderRepository:
    def find_by_id(self, order_id) -> Order | None:
        orders = self._dao.query.filter(id=str(order_id)).all().items
        return orders[0] if orders else None

    def find_by_payment_id(self, payment_id) -> Order | None:
        """The order already created for a payment intent, if any."""
        if not payment_id:
            return None
        orders = self._dao.query.filter(payment_id=str(payment_id)).all().items
        return orders[0] if orders else None

    def for_customer(self, customer_id) -> list[Order]:
        return _newest_first(self._dao.query.filter(customer_id=str(customer_id)).all().items)

    def everything(self) -> list[Order]:
        return _newest_first(self._dao.query.all().items)

"""Delivery addresses — aggregate, command and handler.

Checkout only reads addresses: an order references the address it ships to
by id, and the id must belong to the customer placing the order.
"""

from datetime import UTC, datetime

from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import AddressNotFound


@storefront.aggregate
class Address:
    """A delivery address in a customer's address book."""

    customer_id = Identifier(required=True)
    address_line = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    pincode = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    mobile = String(max_length=20)
    created_at = DateTime()


@storefront.command(part_of="Address")
class AddAddress:
    customer_id = Identifier(required=True)
    address_line = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    pincode = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    mobile = String(max_length=20)


@storefront.command_handler(part_of=Address)
class AddressBookHandler:
    @handle(AddAddress)
    def add_address(self, command):
        address = Address(
            customer_id=command.customer_id,
            address_line=command.address_line,
            city=command.city,
            state=command.state,
            pincode=command.pincode,
            country=command.country,
            mobile=command.mobile,
            created_at=datetime.now(UTC),
        )
        current_domain.repository_for(Address).add(address)
        return str(address.id)


def find_address_for(customer_id, address_id) -> Address:
    """Return the customer's address, or raise ``AddressNotFound``."""
    addresses = current_domain.repository_for(Address)._dao.query.filter(id=str(address_id)).all().items
    if not addresses or str(addresses[0].customer_id) != str(customer_id):
        raise AddressNotFound(str(address_id))
    return addresses[0]

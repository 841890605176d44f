"""Message contracts exchanged over the sagagate queues."""

from __future__ import annotations

from typing import Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field

ContractT = TypeVar("ContractT", bound="Contract")


class Contract(BaseModel):
    """Base for queue payloads.

    Wire names are the collaborators' camelCase names. Every field is
    optional so that a missing key decodes as unknown instead of failing, and
    keys this service does not know about are carried through untouched.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_json(self) -> str:
        """Serialize payload to JSON."""
        return self.model_dump_json(by_alias=True, exclude_none=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls: Type[ContractT], data: str | bytes) -> ContractT:
        """Deserialize payload from JSON."""
        return cls.model_validate_json(data)


class ShippingAddress(Contract):
    street: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = Field(default=None, alias="zipCode")

    def is_complete(self) -> bool:
        return bool(self.street and self.city and self.zip_code)


class WorkflowOrder(Contract):
    """Order payload carried on the initiation and command queues."""

    id: Optional[str] = None
    item: Optional[str] = None
    quantity: Optional[int] = None
    customer_name: Optional[str] = Field(default=None, alias="customerName")
    shipping_address: Optional[ShippingAddress] = Field(
        default=None, alias="shippingAddress"
    )
    status: Optional[str] = None

    def has_shipping_address(self) -> bool:
        return self.shipping_address is not None and self.shipping_address.is_complete()


class PaymentOutcome(Contract):
    """Event published by the payments service on ``payment_completed_queue``."""

    order_id: Optional[str] = Field(default=None, alias="orderId")
    payment_id: Optional[str] = Field(default=None, alias="paymentId")
    status: Optional[str] = None
    item: Optional[str] = None
    quantity: Optional[int] = None
    amount: Optional[float] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "completed"


class ShippingOutcome(Contract):
    """Event published by the shipping service on ``shipping_completed_queue``."""

    order_id: Optional[str] = Field(default=None, alias="orderId")
    shipping_id: Optional[str] = Field(default=None, alias="shippingId")
    status: Optional[str] = None
    product_id: Optional[str] = Field(default=None, alias="productId")
    quantity: Optional[int] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "completed"

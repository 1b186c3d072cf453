"""Pydantic request/response schemas for the ordering API.

These are external contracts, kept separate from the Protean commands.
Identifiers travel as strings and amounts as decimal strings.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Order placement
# ---------------------------------------------------------------------------
class OrderLineSchema(BaseModel):
    product_id: str
    quantity: int
    size_id: str | None = None
    addon_ids: list[str] = Field(default_factory=list)


class PlaceOrderRequest(BaseModel):
    address_id: str
    branch_id: str
    payment_method: str | None = None
    products: list[OrderLineSchema] = Field(min_length=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "address_id": "addr-001",
                    "branch_id": "branch-001",
                    "payment_method": "CASH",
                    "products": [
                        {"product_id": "pizza-001", "size_id": "size-large", "quantity": 1, "addon_ids": ["addon-1"]},
                        {"product_id": "drink-001", "quantity": 2},
                    ],
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------
class UpdateStatusRequest(BaseModel):
    status: str
    expected_status: str | None = None


class AssignCourierRequest(BaseModel):
    courier_id: str


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class ZoneAssignmentResponse(BaseModel):
    assignment_id: str
    zone_id: str
    courier_id: str

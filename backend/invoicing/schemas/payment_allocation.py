from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PaymentAllocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    payment_id: UUID
    invoice_id: UUID
    invoice_no: str
    allocated_amount: Decimal
    foreign_bank_charge: Decimal
    local_bank_charge: Decimal
    recieved_jpy: Decimal
    exchange_rate: Decimal
    created_at: datetime

from uuid import UUID

from sqlalchemy.orm import Session

from invoicing.core.errors import PreconditionError
from invoicing.core.sorting import apply_order_by
from invoicing.models.customer import Customer
from invoicing.models.invoice import Invoice
from invoicing.models.payment import Payment
from invoicing.schemas.customer import CustomerCreate, CustomerUpdate


class CustomerRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self, skip: int = 0, limit: int = 100, order_by: str | None = None
    ) -> list[Customer]:
        query = self.db.query(Customer)
        query = apply_order_by(
            query, Customer, order_by, default_field="name", default_direction="asc"
        )
        return query.offset(skip).limit(limit).all()

    def get_by_id(self, customer_id: UUID) -> Customer | None:
        return self.db.query(Customer).filter(Customer.id == customer_id).first()

    def create(self, data: CustomerCreate) -> Customer:
        values = data.model_dump()
        values["currency"] = values["currency"].upper()
        customer = Customer(**values)
        self.db.add(customer)
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def update(self, customer_id: UUID, data: CustomerUpdate) -> Customer | None:
        customer = self.get_by_id(customer_id)
        if not customer:
            return None
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("currency"):
            update_data["currency"] = update_data["currency"].upper()
        for key, value in update_data.items():
            setattr(customer, key, value)
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def delete(self, customer_id: UUID) -> bool:
        """Delete a customer that has no invoices or payments on record."""
        customer = self.get_by_id(customer_id)
        if not customer:
            return False
        has_invoices = (
            self.db.query(Invoice.id).filter(Invoice.customer_id == customer_id).first() is not None
        )
        has_payments = (
            self.db.query(Payment.id).filter(Payment.customer_id == customer_id).first() is not None
        )
        if has_invoices or has_payments:
            raise PreconditionError("Cannot delete a customer with invoices or payments")
        self.db.delete(customer)
        self.db.commit()
        return True

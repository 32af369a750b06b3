from sqlalchemy import Column, Numeric, String

from salesdesk.core.database import Base


class Product(Base):
    __tablename__ = "products"

    code = Column(String(50), primary_key=True)
    description = Column(String(255), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)

    EDITABLE_FIELDS = ("description", "unit_price")

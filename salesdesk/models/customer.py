from sqlalchemy import Column, Integer, String

from salesdesk.core.database import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)
    firstname = Column(String(100), nullable=False)
    lastname = Column(String(100), nullable=False)
    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    zip = Column(String(20), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=False)

    EDITABLE_FIELDS = ("firstname", "lastname", "address", "city", "zip", "email", "phone")

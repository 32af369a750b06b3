from salesdesk.models.user import User
from salesdesk.models.customer import Customer
from salesdesk.models.product import Product

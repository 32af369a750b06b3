from salesdesk.client.api import ApiClient, NetworkError
from salesdesk.client.forms import CustomerForm, ProductForm
from salesdesk.client.grid import CustomerGrid, ProductGrid, RowMode
from salesdesk.client.token_store import TokenStore

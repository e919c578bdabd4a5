from posdesk.models.inventory import DamagedItem, Expense, Product
from posdesk.models.sales import Invoice

__all__ = [
    "DamagedItem",
    "Expense",
    "Invoice",
    "Product",
]

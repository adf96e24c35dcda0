from .purchase_requests import PurchaseRequest, new_document_id
from .catalog import Product
from .staff import StaffAccount

__all__ = [
    'PurchaseRequest', 'new_document_id',
    'Product',
    'StaffAccount',
]

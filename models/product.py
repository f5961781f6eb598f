# models/product.py
"""
Product model - items members buy, each worth a business volume.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from models.base import to_decimal, pick


@dataclass
class Product:
    """
    Product offered in a plan.

    salesRatio is a 0-100 weight; a plan's ratios sum to 100.
    businessVolume is the commissionable value credited as personal volume.
    """
    name: str
    price: Decimal
    businessVolume: Decimal
    salesRatio: Decimal
    productType: str = "retail"
    id: Optional[int] = None

    def __post_init__(self):
        self.price = to_decimal(self.price, "price")
        self.businessVolume = to_decimal(self.businessVolume, "business_volume")
        self.salesRatio = to_decimal(self.salesRatio, "sales_ratio")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        """Build from a JSON dict (plain or product_-prefixed keys)."""
        return cls(
            name=pick(data, "name", "product_name", default=""),
            price=pick(data, "price", "product_price", default=0),
            businessVolume=pick(data, "business_volume", default=0),
            salesRatio=pick(data, "sales_ratio", "product_sales_ratio", default=0),
            productType=pick(data, "type", "product_type", default="retail"),
            id=pick(data, "id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": float(self.price),
            "business_volume": float(self.businessVolume),
            "sales_ratio": float(self.salesRatio),
            "type": self.productType,
        }

    def __repr__(self):
        return f"<Product(id={self.id}, name={self.name}, bv={self.businessVolume}, ratio={self.salesRatio})>"

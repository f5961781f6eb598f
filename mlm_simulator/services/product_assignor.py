# mlm_simulator/services/product_assignor.py
"""
Weighted random product assignment by sales ratio.
"""
import random
from decimal import Decimal
from typing import List, Optional
import logging

from models.base import ZERO
from models.member import Member
from models.product import Product

logger = logging.getLogger(__name__)

RATIO_SCALE = Decimal("100")


class ProductAssignor:
    """
    Draws one product per member, weighted by salesRatio.

    The random source is injected so runs can be seeded. It only needs
    a random() method returning a float in [0, 1).
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng if rng is not None else random.Random()

    def assign(self, member: Member, products: List[Product]) -> Product:
        """
        Assign a product to a member and set its personal volume.

        Args:
            member: Non-root member
            products: Products in plan order, ratios summing to 100

        Returns:
            The drawn product
        """
        product = self.draw(products)

        member.productId = product.id
        member.productName = product.name
        member.personalVolume = product.businessVolume

        logger.debug(f"Assigned {product.name} to {member.id} (pv={product.businessVolume})")
        return product

    def assignAll(self, members: List[Member], products: List[Product]) -> int:
        """
        Assign products to every non-root member, in list order.

        Returns:
            Number of members assigned
        """
        assigned = 0
        for member in members:
            if member.isRoot:
                continue
            self.assign(member, products)
            assigned += 1

        logger.info(f"Assigned products to {assigned} members from {len(products)} products")
        return assigned

    def draw(self, products: List[Product]) -> Product:
        """
        Pick a product: first whose cumulative ratio reaches r, r uniform in [0, 100).

        Falls back to the last product when rounding leaves r unmatched
        (e.g. ratios summing to 99.999).
        """
        if not products:
            raise ValueError("Cannot draw from an empty product list")

        r = Decimal(str(self.rng.random())) * RATIO_SCALE
        cumulative = ZERO

        for product in products:
            cumulative += product.salesRatio
            if cumulative >= r:
                return product

        return products[-1]

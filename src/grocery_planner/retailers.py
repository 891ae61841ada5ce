"""Retailer directory and deal management."""

import logging
from datetime import datetime, timedelta

from .data_store import DataStore, DataStoreProtocol
from .models import Deal, Retailer

logger = logging.getLogger(__name__)


class RetailerNotFoundError(Exception):
    """Raised when a deal references an unknown retailer."""

    def __init__(self, retailer_id: int):
        self.retailer_id = retailer_id
        super().__init__(f"Retailer with ID '{retailer_id}' not found")


class RetailerDirectory:
    """Manages the retailers and deals that plans are priced against."""

    def __init__(self, data_store: DataStoreProtocol | None = None):
        self.data_store = data_store or DataStore()

    def add_retailer(
        self,
        name: str,
        price_factor: float = 1.0,
        availability_offset: float = 0.0,
        out_of_stock: list[str] | None = None,
    ) -> Retailer:
        """Register a retailer with the next free id.

        Args:
            name: Display name
            price_factor: Multiplier on reference prices
            availability_offset: Added to the baseline availability rate
            out_of_stock: Product names the retailer never carries

        Returns:
            The created Retailer
        """
        retailers = self.data_store.load_retailers()
        retailer = Retailer(
            id=max((r.id for r in retailers), default=0) + 1,
            name=name,
            price_factor=price_factor,
            availability_offset=availability_offset,
            out_of_stock=out_of_stock or [],
        )
        retailers.append(retailer)
        self.data_store.save_retailers(retailers)
        logger.info("Added retailer %s (#%d)", name, retailer.id)
        return retailer

    def list_retailers(self) -> list[Retailer]:
        return self.data_store.load_retailers()

    def add_deal(
        self,
        retailer_id: int,
        product_name: str,
        regular_price: int,
        sale_price: int,
        days: int = 7,
        end_date: datetime | None = None,
        category: str | None = None,
    ) -> Deal:
        """Record a deal.

        Args:
            retailer_id: Retailer offering the deal
            product_name: Product on sale
            regular_price: Shelf price in cents
            sale_price: Deal price in cents
            days: Validity from now, used when end_date is not given
            end_date: Explicit end of the deal
            category: Optional category label

        Returns:
            The created Deal

        Raises:
            RetailerNotFoundError: If the retailer doesn't exist
            ValueError: If the sale price isn't below the regular price
        """
        if not any(r.id == retailer_id for r in self.data_store.load_retailers()):
            raise RetailerNotFoundError(retailer_id)
        if sale_price <= 0 or sale_price > regular_price:
            raise ValueError("Sale price must be positive and no higher than the regular price")

        now = datetime.now()
        deal = Deal(
            retailer_id=retailer_id,
            product_name=product_name,
            regular_price=regular_price,
            sale_price=sale_price,
            start_date=now,
            end_date=end_date or now + timedelta(days=days),
            category=category,
        )
        deals = self.data_store.load_deals()
        deals.append(deal)
        self.data_store.save_deals(deals)
        logger.info("Added deal on %s at retailer #%d", product_name, retailer_id)
        return deal

    def active_deals(self, retailer_id: int | None = None, category: str | None = None) -> list[Deal]:
        return self.data_store.get_deals(retailer_id=retailer_id, category=category)

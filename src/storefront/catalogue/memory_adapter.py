"""In-memory catalogue for development and testing."""

from storefront.catalogue.port import CatalogPort, Product
from storefront.exceptions import ProductNotFoundError


class InMemoryCatalog(CatalogPort):
    def __init__(self, products: list[Product] | None = None) -> None:
        self._products: dict[str, Product] = {}
        for product in products or []:
            self.add(product)

    def add(self, product: Product) -> None:
        self._products[product.product_id] = product

    def get_product(self, product_id: str) -> Product:
        try:
            return self._products[product_id]
        except KeyError:
            raise ProductNotFoundError(product_id) from None

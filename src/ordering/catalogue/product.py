"""Catalogue read model — the product facts ordering needs at call time.

The product catalogue is owned elsewhere; ordering keeps a local, read-only
view of price, name and images so that cart prices are never taken from
client input. The view is loaded by ``manage.py seed-catalogue``.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering


@ordering.projection
class CatalogueProduct:
    product_id = Identifier(identifier=True, required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    images = Text()  # JSON: list of URLs or {url, altText} objects
    updated_at = DateTime()

    @property
    def first_image(self) -> str:
        return first_image_url(json.loads(self.images) if self.images else [])


def first_image_url(images) -> str:
    """Return the first usable image URL as a plain string, or ""."""
    for image in images or []:
        url = image.get("url") if isinstance(image, dict) else image
        if url:
            return str(url)
    return ""


def find_product(product_id) -> CatalogueProduct | None:
    try:
        return current_domain.repository_for(CatalogueProduct).get(str(product_id))
    except ObjectNotFoundError:
        return None


def find_products(product_ids) -> list[CatalogueProduct]:
    """Resolve many products at once; unknown ids are simply absent from the result."""
    ids = sorted({str(pid) for pid in product_ids if pid})
    if not ids:
        return []
    repo = current_domain.repository_for(CatalogueProduct)
    return repo._dao.query.filter(product_id__in=ids).all().items


def upsert_product(product_id, name, price, images=None) -> CatalogueProduct:
    repo = current_domain.repository_for(CatalogueProduct)
    now = datetime.now(UTC)
    images_json = json.dumps(images or [])

    product = find_product(product_id)
    if product is None:
        product = CatalogueProduct(
            product_id=str(product_id),
            name=name,
            price=price,
            images=images_json,
            updated_at=now,
        )
    else:
        product.name = name
        product.price = price
        product.images = images_json
        product.updated_at = now

    repo.add(product)
    return product

# Overview: Service-layer operations for the product catalog used by the request form.

"""
Products Service

The catalog is a flat list of product names. Names are unique by exact,
case-sensitive comparison: "Falcon" and "FALCON" are different products.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product
from ..validation import ConflictError, NotFoundError, ValidationError
from .concurrency import commit_with_retry, run_with_retry

logger = logging.getLogger(__name__)

DEFAULT_PRODUCT_NAMES = [
    "STELLAR 3.0 - SX60L 3.0",
    "STELLAR 3.0 - SX60LS 3.0",
    "STELLAR 3.0 - SQ50L 3.0",
    "STELLAR 3.0- SQ35L 3.0",
    "STELLAR 3.0- SH50L 3.0",
    "STELLAR 3.0- SH35L 3.0",
    "STELLAR 3.0- SH35 3.0",
    "CONDOR - CQ50L 2.0",
    "CONDOR - CQ35L 2.0",
    "CONDOR- CH35L",
    "CONDOR - CH25L",
    "HABROK - HX60L 4K",
    "HABROK - HX60LS 4K",
    "HABROK -HQ50L",
    "HABROK - HQ35L 4K",
    "HABROK - HH35L 4K",
    "HABROK -HE25L 4K",
    "LYNX 3.0 LH35 3.0",
    "LYNX 3.0 LH25 3.0",
    "LYNX 3.0 LH19 3.0",
    "LYNX 3.0 LH15 3.0",
    "LYNX 3.0 LE15 3.0",
    "LYNX 3.0 LE10 3.0",
    "LYNX 2.0 - LH35 2.0",
    "LYNX 2.0 - LH25 2.0",
    "LYNX 2.0 - LH19 2.0",
    "LYNX 2.0 - LH15 2.0",
    "LYNX S - LE15 S",
    "LYNX S - LE10 S",
    "LYNX S - LC06 S",
    "FALCON - FQ50L 2.0",
    "FALCON -FQ50 2.0",
    "FALCON - FQ35 2.0",
    "FALCON - FQ25",
    "FALCON - FH35",
    "FALCON - FH25",
    "PANTHER 2.0 PQ50L 2.0",
    "PANTHER 2.0 PQ35L 2.0",
    "PANTHER 2.0 PH50L 2.0",
    "PANTHER 2.0 PH35L 2.0",
    "THUNDER 2.0 TQ50 2.0",
    "THUNDER 2.0 TQ35 2.0",
    "THUNDER 2.0 TH35P 2.0",
    "THUNDER 2.0 TH25P 2.0",
    "THUNDER 2.0 TE25 2.0",
    "THUNDER 2.0 TE19 2.0",
    "THUNDER ZOOM 2.0 TQ60Z 2.0",
    "THUNDER ZOOM 2.0 TH50Z 2.0",
    "THUNDER 3.0 TQ50CL 3.0",
    "THUNDER 3.0 TQ50C 3.0",
    "THUNDER 3.0 TQ35C 3.0",
    "THUNDER 3.0 TH35C 3.0",
    "ALPEX 4K A50EL KIT",
    "ALPEX 4K A50EL",
    "ALPEX 4K A50E KIT",
    "ALPEX 4K A50E",
    "ALPEX LITE A40EL KIT TH4",
    "ALPEX LITE A40EL + M4-IR850 Mini 250m Black Light (18350) + Bracket",
    "ALPEX LITE A40EL",
    "ALPEX LITE A40E KIT TH4",
    "ALPEX LITE A40E + M4-IR850 Mini 250m Black Light (18350) + Bracket",
    "ALPEX LITE A40E",
    "ALPEX A50T-S KIT",
    "ALPEX A50T-S",
    "CHEETAH C32FSL KIT",
    "CHEETAH C32FS KIT",
    "M15 TRAIL CAMERA",
    "M15 SP5000",
    "M15 TRAIL CAMERA + SD card with SP5000",
    "EXPLORER",
    "M4-IR850 Mini 250m Black Light (18350)",
    "M4-IR850 Mini 250m Black Light (18350) + Bracket",
]


def list_products() -> list[dict]:
    products = run_with_retry(
        db.session,
        lambda: db.session.query(Product).order_by(Product.name.asc()).all(),
    )
    return [p.to_dict() for p in products]


def _name_exists(name: str) -> bool:
    return db.session.query(Product.id).filter(Product.name == name).first() is not None


def create_product(name) -> dict:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Product name is required")

    if run_with_retry(db.session, lambda: _name_exists(name)):
        raise ConflictError("Product already exists")

    def _apply():
        product = Product(name=name)
        db.session.add(product)
        return product

    try:
        product = commit_with_retry(db.session, _apply)
    except IntegrityError:
        # Lost a race with an identical insert.
        raise ConflictError("Product already exists")
    logger.info("Product %r created (%s)", product.name, product.id)
    return product.to_dict()


def delete_product(product_id: str) -> None:
    product = run_with_retry(db.session, lambda: db.session.get(Product, product_id))
    if product is None:
        raise NotFoundError("Product not found")
    name = product.name
    commit_with_retry(db.session, lambda: db.session.delete(product))
    logger.info("Product %r deleted (%s)", name, product_id)


def seed_products(names: list[str] | None = None) -> int:
    """Insert every name not already in the catalog; returns the count inserted."""
    def _apply():
        created = 0
        for name in names if names is not None else DEFAULT_PRODUCT_NAMES:
            if _name_exists(name):
                continue
            db.session.add(Product(name=name))
            db.session.flush()
            created += 1
        return created

    return commit_with_retry(db.session, _apply)

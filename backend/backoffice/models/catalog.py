# Overview: Catalog models: categories, products, options, variants and SKUs.
from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_money


class ProductCategory(db.Model):
    """
    Self-referential category tree.

    The parent pointer graph must stay acyclic. Storage does not enforce it;
    category_service rejects re-parenting beneath a descendant.
    """
    __tablename__ = "product_categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    parent_category_id = db.Column(db.Integer, db.ForeignKey("product_categories.id"), nullable=True, index=True)
    hero_image = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    parent = db.relationship(
        "ProductCategory",
        remote_side=[id],
        backref=db.backref("children", lazy=True),
    )

    def __repr__(self) -> str:
        return f"<ProductCategory id={self.id} name={self.name!r} parent={self.parent_category_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "parent_category_id": self.parent_category_id,
            "hero_image": self.hero_image,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(64), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Nullable when pricing lives on the option SKUs
    price = db.Column(db.Numeric(10, 2), nullable=True)
    sale_price = db.Column(db.Numeric(10, 2), nullable=True)
    sale_start = db.Column(db.DateTime(timezone=True), nullable=True)
    sale_end = db.Column(db.DateTime(timezone=True), nullable=True)

    # [{"media_id": ..., "url": ..., "title": ...}, ...]
    product_media = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "price": to_money(self.price),
            "sale_price": to_money(self.sale_price),
            "sale_start": to_utc_z(self.sale_start),
            "sale_end": to_utc_z(self.sale_end),
            "product_media": self.product_media or [],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductCategoryAssignment(db.Model):
    __tablename__ = "product_category_assignments"

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey("product_categories.id"), primary_key=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    category = db.relationship("ProductCategory")

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "category_id": self.category_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductOption(db.Model):
    """An option axis such as "Size" or "Color"."""
    __tablename__ = "product_options"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    option_name = db.Column(db.String(128), nullable=False, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "option_name": self.option_name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductOptionVariant(db.Model):
    """A value on an option axis, e.g. "XL" under "Size"."""
    __tablename__ = "product_option_variants"
    __table_args__ = (
        db.UniqueConstraint("option_id", "option_value", name="uq_option_variants_option_value"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    option_id = db.Column(db.Integer, db.ForeignKey("product_options.id"), nullable=False, index=True)
    option_value = db.Column(db.String(128), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    option = db.relationship("ProductOption", backref=db.backref("variants", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "option_id": self.option_id,
            "option_value": self.option_value,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductOptionSKU(db.Model):
    """Product x option x variant combination with its own SKU and price."""
    __tablename__ = "product_option_skus"
    __table_args__ = (
        db.UniqueConstraint("product_id", "option_id", "variant_id", name="uq_option_skus_combination"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    option_id = db.Column(db.Integer, db.ForeignKey("product_options.id"), nullable=False)
    variant_id = db.Column(db.Integer, db.ForeignKey("product_option_variants.id"), nullable=False)
    sku = db.Column(db.String(64), nullable=False)

    price = db.Column(db.Numeric(10, 2), nullable=True)
    sale_price = db.Column(db.Numeric(10, 2), nullable=True)
    sale_start = db.Column(db.DateTime(timezone=True), nullable=True)
    sale_end = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    option = db.relationship("ProductOption")
    variant = db.relationship("ProductOptionVariant")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "option_id": self.option_id,
            "variant_id": self.variant_id,
            "sku": self.sku,
            "price": to_money(self.price),
            "sale_price": to_money(self.sale_price),
            "sale_start": to_utc_z(self.sale_start),
            "sale_end": to_utc_z(self.sale_end),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

import uuid
from datetime import datetime, timezone
from beanmart.extensions import db


class ProductVariant(db.Model):
    __tablename__ = "product_variants"

    id = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    product_id = db.Column(
        db.Uuid,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sku = db.Column(db.String(100))
    price = db.Column(db.Numeric(12, 2), nullable=False)
    compare_at_price = db.Column(db.Numeric(12, 2))
    stock = db.Column(db.Integer, nullable=False, default=0)
    weight_gram = db.Column(db.Integer)  # bag weight, e.g. 250 / 1000
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    images = db.relationship(
        "VariantImage",
        backref="variant",
        lazy="select",
        cascade="all, delete-orphan",
        order_by="VariantImage.position",
    )

    def to_dict(self, with_images=False):
        data = {
            "id": str(self.id),
            "productId": str(self.product_id),
            "sku": self.sku,
            "price": float(self.price) if self.price is not None else None,
            "compareAtPrice": (
                float(self.compare_at_price)
                if self.compare_at_price is not None
                else None
            ),
            "stock": self.stock,
            "weightGram": self.weight_gram,
            "isActive": self.is_active,
        }
        if with_images:
            data["images"] = [img.to_dict() for img in self.images]
        return data

    def __repr__(self):
        return f"<Variant {self.sku or self.id} @ {self.price}>"

import uuid
from datetime import datetime, timezone
from beanmart.extensions import db


class VariantImage(db.Model):
    __tablename__ = "variant_images"

    id = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    variant_id = db.Column(
        db.Uuid,
        db.ForeignKey("product_variants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url = db.Column(db.String(1024), nullable=False)
    # 1 = cover image. Not unique: concurrent uploads may share a position.
    position = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self):
        return {
            "id": str(self.id),
            "variantId": str(self.variant_id),
            "url": self.url,
            "position": self.position,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<VariantImage {self.variant_id} #{self.position}>"

import uuid
from datetime import datetime, timezone
from beanmart.extensions import db


class Admin(db.Model):
    __tablename__ = "admins"

    id = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return f"<Admin {self.email}{'' if self.is_active else ' (inactive)'}>"

"""Flask CLI commands for admin operations."""
import click
from flask import current_app


def register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables."""
        from beanmart.extensions import db

        db.create_all()
        # strip credentials from the URI before echoing
        uri = current_app.config["SQLALCHEMY_DATABASE_URI"]
        click.echo(f"Database initialized: {uri.split('@')[-1]}")

    @app.cli.command("create-admin")
    @click.argument("email")
    def create_admin(email):
        """Create an active admin account."""
        from beanmart.extensions import db
        from beanmart.models.admin import Admin

        email = email.strip().lower()
        if Admin.query.filter_by(email=email).first():
            click.echo(f"Admin {email} already exists.")
            return
        admin = Admin(email=email, is_active=True)
        db.session.add(admin)
        db.session.commit()
        click.echo(f"Created admin {email} ({admin.id})")

    @app.cli.command("admin-token")
    @click.argument("email")
    def admin_token(email):
        """Print a Bearer token for an active admin."""
        from beanmart.auth import issue_admin_token
        from beanmart.models.admin import Admin

        admin = Admin.query.filter_by(email=email.strip().lower()).first()
        if not admin or not admin.is_active:
            raise click.ClickException(f"No active admin with email {email}")
        click.echo(issue_admin_token(admin))

    def _set_active(email, active):
        from beanmart.extensions import db
        from beanmart.models.admin import Admin

        admin = Admin.query.filter_by(email=email.strip().lower()).first()
        if not admin:
            raise click.ClickException(f"No admin with email {email}")
        admin.is_active = active
        db.session.commit()
        click.echo(f"{admin.email}: {'active' if active else 'inactive'}")

    @app.cli.command("activate-admin")
    @click.argument("email")
    def activate_admin(email):
        """Re-enable an admin account."""
        _set_active(email, True)

    @app.cli.command("deactivate-admin")
    @click.argument("email")
    def deactivate_admin(email):
        """Disable an admin account; its tokens stop working immediately."""
        _set_active(email, False)

    @app.cli.command("list-admins")
    def list_admins():
        from beanmart.models.admin import Admin

        for admin in Admin.query.order_by(Admin.created_at).all():
            status = "active" if admin.is_active else "inactive"
            click.echo(f"  {admin.email} [{status}] {admin.id}")

    @app.cli.command("image-stats")
    def image_stats():
        """Show image counts per variant."""
        from beanmart.extensions import db
        from beanmart.models.image import VariantImage

        rows = (
            db.session.query(VariantImage.variant_id, db.func.count(VariantImage.id))
            .group_by(VariantImage.variant_id)
            .all()
        )
        click.echo(f"Total images: {sum(count for _, count in rows)}")
        for variant_id, count in rows:
            click.echo(f"  {variant_id}: {count}")

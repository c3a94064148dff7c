from flask import Flask
from config import Config, sqlite_engine_options

from models import db
from flask_migrate import Migrate
from utils.seed import seed_accounts, seed_catalog


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)

    if overrides:
        app.config.update(overrides)
        # engine options follow the database actually in use
        if "SQLALCHEMY_ENGINE_OPTIONS" not in overrides:
            app.config["SQLALCHEMY_ENGINE_OPTIONS"] = sqlite_engine_options(
                app.config["SQLALCHEMY_DATABASE_URI"],
                app.config["SQLITE_BUSY_TIMEOUT_SECONDS"],
            )

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    register_cli(app)

    return app

#-------------------------
import click

def register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables (use `flask db upgrade` for managed schemas)."""
        db.create_all()
        click.echo("Database tables created")

    @app.cli.command("seed-demo")
    @click.option("--skip-catalog", is_flag=True, help="Only create the admin/user accounts.")
    def seed_demo(skip_catalog):
        """Seed the admin/user accounts and a demo catalog (idempotent)."""
        seed_accounts()
        click.echo("Accounts ready: admin, user")
        if skip_catalog:
            return
        added = seed_catalog()
        click.echo(f"Catalog rows added: {added}")

#-------------------------

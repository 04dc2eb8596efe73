from flask import Flask, jsonify
from config import Config
from routes import health_bp, facility_bp, service_bp, booking_bp, payments_bp, webhook_bp

from models import db
from flask_migrate import Migrate
from core.errors import BookingError
from utils.auth_context import load_current_actor


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(facility_bp)
    app.register_blueprint(service_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(webhook_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.before_request
    def _load_actor():
        load_current_actor()

    @app.errorhandler(BookingError)
    def _booking_error(exc):
        if exc.status_code >= 500:
            app.logger.error("Booking engine failure: %s", exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp


    register_cli(app)


    return app

#-------------------------
import click
from datetime import datetime
from types import SimpleNamespace
from core import facilities, catalog


def register_cli(app):
    @app.cli.command("seed-demo")
    @click.option("--owner", default="owner-1", help="Opaque id of the lot owner")
    def seed_demo(owner):
        """Create a demo lot with a slot grid and two add-on services."""
        lot = facilities.create_facility(owner, SimpleNamespace(
            name="Central Plaza Parking",
            description="Demo lot",
            city="Bengaluru",
            total=20,
            hourly_rate=4000,
            currency="INR",
            vehicle_types=["car", "bike"],
        ))
        facilities.generate_layout(lot.id, owner, levels=2, rows=2, cols=5, slot_type="car")

        wash = catalog.create_service(SimpleNamespace(
            name="Exterior wash", description=None, category="car-wash", base_price=6000, unit="per-service",
        ), owner)
        catalog.set_availability(wash.id, SimpleNamespace(facility_id=lot.id, custom_price=5000, is_active=True), owner)

        valet = catalog.create_service(SimpleNamespace(
            name="Valet", description=None, category="valet", base_price=15000, unit="per-service",
        ), owner)
        catalog.set_availability(valet.id, SimpleNamespace(facility_id=lot.id, custom_price=None, is_active=True), owner)

        print(f"Seeded facility {lot.id} at {datetime.utcnow().isoformat()}")

    @app.cli.command("generate-layout")
    @click.argument("facility_id", type=int)
    @click.option("--levels", default=1, type=click.IntRange(1, 20))
    @click.option("--rows", default=5, type=click.IntRange(1, 100))
    @click.option("--cols", default=10, type=click.IntRange(1, 100))
    @click.option("--type", "slot_type", default="car")
    def generate_layout(facility_id, levels, rows, cols, slot_type):
        """Replace a facility's slots with a fresh grid."""
        try:
            created = facilities.generate_layout(facility_id, "cli", levels, rows, cols, slot_type)
        except BookingError as exc:
            raise click.ClickException(exc.message)
        print(f"{len(created)} slots generated for facility {facility_id}")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)

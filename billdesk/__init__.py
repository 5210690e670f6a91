import os
from datetime import datetime, date

from flask import Flask
from flask.json.provider import DefaultJSONProvider

from dotenv import load_dotenv
load_dotenv()

from .config import Config
from .extensions import db, migrate

# Application version
APP_VERSION = "0.1.0"


def format_date(value, fmt="%d %b %Y"):
    """Format a date or datetime for display.

    If value is falsy, return an empty string.
    """
    if not value:
        return ""
    if isinstance(value, (date, datetime)):
        return value.strftime(fmt)
    try:
        parsed = datetime.fromisoformat(str(value))
        return parsed.strftime(fmt)
    except ValueError:
        return str(value)


def format_money(value, currency="INR"):
    """Render an amount as "INR 1,250.00". Non-numeric values render as 0."""
    try:
        amount = float(value or 0)
    except (TypeError, ValueError):
        amount = 0.0
    return f"{currency or ''} {amount:,.2f}".strip()


class IsoDateJSONProvider(DefaultJSONProvider):
    """JSON provider that emits ISO-8601 for dates instead of HTTP dates."""

    # Breakdowns are ordered dicts (first-seen service order, month order)
    sort_keys = False

    @staticmethod
    def default(o):
        if isinstance(o, (date, datetime)):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def create_app(config_overrides=None):
    """Application factory for billdesk.

    config_overrides: optional mapping applied after Config (tests use this to
    point at an in-memory database).
    """
    app = Flask(__name__)
    app.json = IsoDateJSONProvider(app)
    app.config.from_object(Config)
    app.config.setdefault("APP_VERSION", APP_VERSION)
    if config_overrides:
        app.config.update(config_overrides)

    app.jinja_env.filters["format_date"] = format_date
    app.jinja_env.filters["format_money"] = format_money

    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        raise RuntimeError("DATABASE_URL is not set. Refusing to start without a database.")

    os.makedirs(app.config["DOCUMENTS_ROOT"], exist_ok=True)

    db.init_app(app)
    migrate.init_app(app, db)

    from .routes import bp as main_bp

    app.register_blueprint(main_bp)

    with app.app_context():
        from .models import Settings

        db.create_all()

        # Ensure there is at least one Settings row
        if not Settings.query.first():
            db.session.add(
                Settings(
                    business_name="Your Company Name",
                    default_currency=app.config.get("DEFAULT_CURRENCY", "INR"),
                )
            )
            db.session.commit()

    return app

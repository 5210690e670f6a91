"""JSON API routes package.

This package defines the primary Flask blueprint (`bp`) and imports the split
route modules so their @bp.route decorators are registered.

NOTE: The Flask app factory and database initialization live in `billdesk/__init__.py`,
not inside the routes package.
"""

from flask import Blueprint

bp = Blueprint("main", __name__)

# Import route modules to register routes on the blueprint.
# These imports must come AFTER `bp` is defined.
from . import clients  # noqa: F401,E402
from . import billing  # noqa: F401,E402
from . import reminders  # noqa: F401,E402
from . import analytics  # noqa: F401,E402
from . import export  # noqa: F401,E402
from . import errors  # noqa: F401,E402

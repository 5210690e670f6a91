"""Shared Flask extension instances.

Kept in their own module so models, routes and migrations can import `db`
without importing the application factory.
"""

from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
migrate = Migrate()

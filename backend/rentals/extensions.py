# Overview: Flask extension instances backing the SQL record store and its Alembic revisions.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# record_collections lives here; see models/records.py
db = SQLAlchemy()
migrate = Migrate(directory="migrations")

# Overview: Flask extension instances shared by the engine adapters, models and migrations.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()

# SQLite cannot ALTER most constraints in place; autogenerated revisions use batch mode
migrate = Migrate(render_as_batch=True, compare_type=True)

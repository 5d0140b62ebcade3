# Overview: Flask extension instances shared by the catalog, checkout and ledger services.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate(compare_type=True)

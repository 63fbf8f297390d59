# app/db/base_class.py

from sqlalchemy.orm import declarative_base

# Declarative base shared by the events and status history tables.
# Alembic's env.py reads Base.metadata through app.models.
Base = declarative_base()

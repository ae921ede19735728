# app/models/base.py
from sqlalchemy.orm import declarative_base

# Base class for the ORM models used by the local SQL backend
Base = declarative_base()

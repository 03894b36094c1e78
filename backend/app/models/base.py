"""
Declarative base for the tenant database schema
"""
from sqlalchemy.orm import declarative_base

Base = declarative_base()

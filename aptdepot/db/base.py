"""Declarative base for the catalog models."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()

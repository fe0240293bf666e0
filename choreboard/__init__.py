"""Household chore board: SQLite storage of chores, routines and blueprints, with a JSON web app."""

__version__ = "0.1.0"
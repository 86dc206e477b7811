"""
Data models for the AmberDB staff example.
"""

from __future__ import annotations

from amberdb import Entity, IntegerField, StringField


class Employee(Entity):
    name = StringField(nullable=False, max_length=120)
    role = StringField(nullable=True, max_length=80)
    age = IntegerField(db_default=18)

    class Meta:
        table = "employee"

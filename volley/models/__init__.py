"""VolleyScore data models — Pydantic schemas for match and roster state."""

from volley.models.roster import *
from volley.models.match import *

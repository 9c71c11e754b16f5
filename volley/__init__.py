"""
VolleyScore — Volleyball match scoring and pickup-session rotation engine
=========================================================================
Set/match rules with deuce, tie-break and sudden death, reversible scoring,
and queue-based team rotation that respects locked players.
"""

__version__ = "1.0.0"
__app_name__ = "VolleyScore"

"""
Central constants for the registry.

Rashi and nakshatra values are stored exactly as displayed.
"""
from __future__ import annotations

PROFILES_TABLE = "profiles"
SUBMITTER_SESSIONS_TABLE = "submitter_sessions"

RASHIS = (
    "Mesh (Aries)",
    "Vrishabh (Taurus)",
    "Mithun (Gemini)",
    "Kark (Cancer)",
    "Singh (Leo)",
    "Kanya (Virgo)",
    "Tula (Libra)",
    "Vrishchik (Scorpio)",
    "Dhanu (Sagittarius)",
    "Makar (Capricorn)",
    "Kumbh (Aquarius)",
    "Meen (Pisces)",
)

NAKSHATRAS = (
    "Ashwini",
    "Bharani",
    "Krittika",
    "Rohini",
    "Mrigashira",
    "Ardra",
    "Punarvasu",
    "Pushya",
    "Ashlesha",
    "Magha",
    "Purva Phalguni",
    "Uttara Phalguni",
    "Hasta",
    "Chitra",
    "Swati",
    "Vishakha",
    "Anuradha",
    "Jyeshtha",
    "Moola",
    "Purva Ashadha",
    "Uttara Ashadha",
    "Shravana",
    "Dhanishta",
    "Shatabhisha",
    "Purva Bhadrapada",
    "Uttara Bhadrapada",
    "Revati",
)

# Placeholder strings that leak into URLs when a client serializes a missing value.
INVALID_LOOKUP_KEYS = frozenset({"undefined", "null"})

# Permission keys seeded by scripts/init_db.py
PERMISSIONS = (
    ("admin.view", "Admin: view records"),
    ("profiles.view", "Profiles: view by submitter"),
    ("profiles.edit", "Profiles: edit"),
    ("profiles.delete", "Profiles: delete"),
)

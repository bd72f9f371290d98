"""Static migration settings.

Runtime overrides (database URL, log level, batch size) live in `config.py`
and are read from environment variables. This module holds the fixed values
the normalized schema depends on, most importantly the sentinel defaults
substituted for missing sub-fields.
"""

import os

# Single source of truth for static configuration.
SETTINGS: dict[str, object] = {
    # Storage
    "DB_PATH": os.path.join(os.path.dirname(__file__), "data", "company.db"),
    "BATCH_SIZE": 500,
    # Logging
    "LOG_LEVEL": "INFO",
    # Sentinel defaults for missing text sub-fields
    "NO_LINK": "No Link Provided",
    "NO_NAME": "No Name Provided",
    "NO_INDUSTRY": "No Industry Provided",
    "NO_LOCATION": "No Location Provided",
    # Update posts: missing image/text load as empty strings, likes as 0.
    "NO_IMAGE": "",
    "NO_TEXT": "",
    "NO_NUMBER": 0,
    # Epoch components used when an update's posted_on parts are missing.
    "EPOCH_YEAR": 1900,
    "EPOCH_MONTH": 1,
    "EPOCH_DAY": 1,
}

# Convenience exports.
DB_PATH = SETTINGS["DB_PATH"]
BATCH_SIZE = SETTINGS["BATCH_SIZE"]
LOG_LEVEL = SETTINGS["LOG_LEVEL"]

NO_LINK = SETTINGS["NO_LINK"]
NO_NAME = SETTINGS["NO_NAME"]
NO_INDUSTRY = SETTINGS["NO_INDUSTRY"]
NO_LOCATION = SETTINGS["NO_LOCATION"]
NO_IMAGE = SETTINGS["NO_IMAGE"]
NO_TEXT = SETTINGS["NO_TEXT"]
NO_NUMBER = SETTINGS["NO_NUMBER"]

EPOCH_YEAR = SETTINGS["EPOCH_YEAR"]
EPOCH_MONTH = SETTINGS["EPOCH_MONTH"]
EPOCH_DAY = SETTINGS["EPOCH_DAY"]

# Configuration for the player export runner
#
# All settings load from environment variables so CI jobs and local shells
# can change them without editing code.

import os

# Default output format when --format is not given: json | html | markdown
PLAYER_EXPORT_FORMAT = os.getenv("PLAYER_EXPORT_FORMAT", "json")

# Directory exports are written to when --output is not given
PLAYER_EXPORT_OUTPUT_DIR = os.getenv("PLAYER_EXPORT_OUTPUT_DIR", "exports")

# Optional log file; logs go to stderr only when unset
PLAYER_EXPORT_LOG_FILE = os.getenv("PLAYER_EXPORT_LOG_FILE")

# Example .env file content:
# PLAYER_EXPORT_FORMAT=markdown
# PLAYER_EXPORT_OUTPUT_DIR=/srv/campaign/exports
# PLAYER_EXPORT_LOG_FILE=player_export.log

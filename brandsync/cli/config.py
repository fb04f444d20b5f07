# brandsync/cli/config.py
import os
from dotenv import load_dotenv
from pathlib import Path

# This file is at brandsync/cli/config.py; the project root is two levels up
project_root = Path(__file__).parent.parent.parent.resolve()

# Load environment variables from .env before brandsync.settings is imported
load_dotenv(dotenv_path=project_root / '.env', override=True)

# Surface used by `theme resolve` when --surface is not given
BRANDSYNC_CLI_DEFAULT_SURFACE = os.getenv("BRANDSYNC_CLI_DEFAULT_SURFACE") or None

# Indentation of JSON printed by the CLI
BRANDSYNC_CLI_JSON_INDENT = int(os.getenv("BRANDSYNC_CLI_JSON_INDENT", "2"))

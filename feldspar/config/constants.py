"""
This file is part of feldspar.

feldspar is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

feldspar is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with feldspar.  If not, see <https://www.gnu.org/licenses/>.
"""

import os
from pathlib import Path

from appdirs import AppDirs

import feldspar

# Environment variables
FELDSPAR_ENVVAR_CONFIG_ROOT = "FELDSPAR_CONFIG_ROOT"
FELDSPAR_ENVVAR_USER_LOG_DIR = "FELDSPAR_USER_LOG_DIR"
FELDSPAR_ENVVAR_ORACLE_URL = "FELDSPAR_ORACLE_URL"

# Base Filepaths
FELDSPAR_PACKAGE = Path(feldspar.__file__).parent.resolve()
BASE_DIR = FELDSPAR_PACKAGE.parent.resolve()

# User Application Filepaths
APP_DIR = AppDirs(feldspar.__title__, feldspar.__author__)
DEFAULT_CONFIG_ROOT = Path(os.getenv(FELDSPAR_ENVVAR_CONFIG_ROOT, default=APP_DIR.user_data_dir))
USER_LOG_DIR = Path(os.getenv(FELDSPAR_ENVVAR_USER_LOG_DIR, default=APP_DIR.user_log_dir))
DEFAULT_LOG_FILENAME = "feldspar.log"
DEFAULT_JSON_LOG_FILENAME = "feldspar.json"

# Round defaults
DEFAULT_REPLICATION_TIMEOUT = 30  # seconds
DEFAULT_POLL_INTERVAL = 0.1  # seconds

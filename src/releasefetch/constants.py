"""
Constants and configuration values for releasefetch.

This module contains the hardcoded values, URLs, timeouts, and other constants
used throughout the application.
"""

# GitHub API
DEFAULT_GITHUB_API_URL = "https://api.github.com"
GITHUB_API_ACCEPT = "application/vnd.github.v3+json"
GITHUB_MAX_PER_PAGE = 100  # Max allowed by the GitHub API

# Accept headers used when fetching release artifacts
ASSET_ACCEPT = "application/octet-stream"
ARCHIVE_ACCEPT = "*/*"

# Network and transfer settings
HTTP_STATUS_OK = 200
DEFAULT_REQUEST_TIMEOUT = 300  # seconds, total per request
DEFAULT_CHUNK_SIZE = 8192
BYTES_PER_MEGABYTE = 1024 * 1024
FILE_SIZE_MB_LOGGING_THRESHOLD = 1.0

# Source archive extensions
TARBALL_EXTENSION = ".tar.gz"
ZIPBALL_EXTENSION = ".zip"

# Archive formats recognised for post-download extraction
ZIP_ARCHIVE_SUFFIXES = (".zip",)
TAR_ARCHIVE_SUFFIXES = (".tar", ".tar.gz", ".tgz", ".tar.bz2", ".tbz2", ".tar.xz", ".txz")

# Configuration
APP_NAME = "releasefetch"
CONFIG_FILE_NAME = "releasefetch.yaml"
DEFAULT_OUT_DIR = "."

# Environment variables
LOG_LEVEL_ENV_VAR = "RELEASEFETCH_LOG_LEVEL"
API_URL_ENV_VAR = "RELEASEFETCH_API_URL"
GITHUB_OUTPUT_ENV_VAR = "GITHUB_OUTPUT"

# Logging configuration
LOGGER_NAME = "releasefetch"
LOG_FILE_NAME = "releasefetch.log"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

"""Infrastructure configuration constants - single source of truth for env vars."""

import os

# Figma REST API - Personal Access Token for design file access
FIGMA_TOKEN = os.getenv("FIGMA_TOKEN", "")

FIGMA_API_BASE = os.getenv("FIGMA_API_BASE", "https://api.figma.com")

# Log directory - configurable for containers
LOG_DIR = os.getenv("LOG_DIR", "")

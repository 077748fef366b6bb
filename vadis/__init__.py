"""
Vadis - Screenplay Analysis Pipeline

Turns a screenplay into scenes, characters, casting suggestions, VFX needs,
product-placement opportunities, location options, a financial plan and an
executive summary, one LLM-backed stage at a time.

Version: 1.2.0
"""

__version__ = "1.2.0"
__author__ = "Vadis Team"
__project__ = "Vadis"

from pathlib import Path

# Load environment variables early - before any other imports that might need them
from vadis.core.env_loader import ensure_env_loaded
ensure_env_loaded()

# Package root directory
PACKAGE_ROOT = Path(__file__).parent
PROJECT_ROOT = PACKAGE_ROOT.parent

__all__ = [
    "__version__",
    "__author__",
    "__project__",
    "PACKAGE_ROOT",
    "PROJECT_ROOT",
]

"""gcptools - Plan-driven GCP lifecycle operations (GKE, Compute Engine, IAM)."""

from .utils.logging import setup_logging, get_logger

__version__ = "0.1.0"

setup_logging()
logger = get_logger("gcptools")

"""alertline: emergency alert backend and mobile session client."""

__version__ = "0.1.0"

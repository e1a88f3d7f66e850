"""
Settings for the board calculator front ends.
Values come from environment variables with local defaults.
"""
import os

class Config:
    BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    # Ordered record store (JSON list of flat records)
    STORE_PATH = os.environ.get("DIMENSIONAMENTO_STORE_PATH", os.path.join(BASE_DIR, "data", "cuadros.json"))

    # Where main.py writes Excel reports
    EXPORT_DIR = os.environ.get("DIMENSIONAMENTO_EXPORT_DIR", os.getcwd())

    LOG_LEVEL = os.environ.get("DIMENSIONAMENTO_LOG_LEVEL", "INFO")
    LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

"""
Sampling Plan Service Configuration
Environment variables and application constants
"""
import os
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# ======================
# Application Configuration
# ======================
APP_NAME = "Sampling Plan API"
APP_VERSION = "1.0.0"
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ======================
# Sampling Defaults (ISO 2859-1)
# ======================
DEFAULT_AQL_LEVEL = os.getenv("DEFAULT_AQL_LEVEL", "II").upper()
DEFAULT_AQL_MAJOR = float(os.getenv("DEFAULT_AQL_MAJOR", "2.5"))
DEFAULT_AQL_MINOR = float(os.getenv("DEFAULT_AQL_MINOR", "4.0"))

# AQL values offered by the form (Table 2-A columns we carry)
SUPPORTED_AQLS = [0.65, 1.0, 1.5, 2.5, 4.0, 6.5]

# Tags printed before any sample size is known
DEFAULT_TAG_QUANTITY = int(os.getenv("DEFAULT_TAG_QUANTITY", "4"))

# ======================
# Export
# ======================
EXPORT_ORGANIZATION = os.getenv("EXPORT_ORGANIZATION", "Quality Assurance")
PLAN_DOCUMENT_TITLE = "Inspection Plan"

# ======================
# CORS Configuration
# ======================
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173"
    ).split(",")
    if origin.strip()
]

# ======================
# Helper Functions
# ======================
def is_production():
    return ENVIRONMENT == "production"

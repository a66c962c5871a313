import os
from dotenv import load_dotenv

load_dotenv()

# Database connection string, any SQLAlchemy URL
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./buildingops.db")

# Seconds to wait on a single source collector before treating it as failed
AGGREGATION_SOURCE_TIMEOUT = float(os.getenv("AGGREGATION_SOURCE_TIMEOUT", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

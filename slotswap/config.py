# config.py
import os
from dotenv import load_dotenv

load_dotenv()

# Store configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./slotswap.db")

# Caller identity (tokens are issued by a trusted collaborator sharing this key)
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 30))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

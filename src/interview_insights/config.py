"""Environment configuration."""
import os
from pathlib import Path

from dotenv import load_dotenv


load_dotenv()

ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")

ANALYSIS_MODEL = os.getenv("ANALYSIS_MODEL", "claude-sonnet-4-5")
ANALYSIS_MAX_TOKENS = int(os.getenv("ANALYSIS_MAX_TOKENS", "4096"))
ANALYSIS_TEMPERATURE = float(os.getenv("ANALYSIS_TEMPERATURE", "0.3"))

# Batch analysis: small fan-out with a pause between batches for rate limits
ANALYSIS_CONCURRENCY = int(os.getenv("ANALYSIS_CONCURRENCY", "3"))
ANALYSIS_BATCH_DELAY = float(os.getenv("ANALYSIS_BATCH_DELAY", "1.0"))

DATA_DIR = Path(os.getenv("DATA_DIR", "data"))

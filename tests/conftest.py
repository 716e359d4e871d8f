import os

# keep the API from touching disk or rate limiting the test client
os.environ.setdefault("BRIXSHIELD_STORAGE", "memory")
os.environ.setdefault("BRIXSHIELD_RATELIMIT_ENABLED", "false")

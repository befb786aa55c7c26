import os

# app.config reads these at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-0123456789")
os.environ.setdefault("RATING_WRITE_RATE", "1000/minute")
os.environ.setdefault("ADJUSTER_REQUIRES_ALL_EPISODES", "true")
os.environ.setdefault("REQUIRE_COMPLETE_SEASONS", "false")

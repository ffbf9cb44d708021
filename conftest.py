import os

# Tests sign tokens with a fixed key and never read a developer's database.
os.environ.setdefault("SECRET_KEY", "x" * 32)
os.environ.setdefault("LOG_LEVEL", "INFO")

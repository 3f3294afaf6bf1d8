"""Test package. Settings are read at import time, so test defaults are set here first."""

import os
import tempfile

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("UPLOAD_DIR", os.path.join(tempfile.gettempdir(), "storefront-test-uploads"))

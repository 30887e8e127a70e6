import os
import tempfile

# settings are read at import time; point everything at throwaway local resources
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("EMAIL_DELIVERY_MODE", "inline")
os.environ.setdefault("EMAIL_ENABLED", "false")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("STORAGE_LOCAL_DIR", tempfile.mkdtemp(prefix="naasir-uploads-"))
os.environ.setdefault("ADMIN_EMAIL", "ops@naasirtravel.test")
os.environ.setdefault("APPLICATION_TRANSITION_POLICY", "permissive")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import os

# Settings are cached on first use, so the test environment must be in place before any timetrack import.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["JWT_SECRET"] = "timetrack-test-secret"
os.environ["SCHEMA_GUARD_STRICT"] = "false"

import os

# App startup must not touch a real database file during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from clubbracket.database import import_models  # noqa: E402

import_models()

import os

# Force production env if your app reads this
os.environ.setdefault("ENV", "production")

from redhope import create_app  # noqa: E402

app = create_app()

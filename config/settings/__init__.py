# config/settings/__init__.py
import os

# DJANGO_ENV=prod -> PostgreSQL + secure cookies; anything else -> local
DJANGO_ENV = os.getenv("DJANGO_ENV", "local").strip().lower()

if DJANGO_ENV in ("prod", "production"):
    from .prod import *  # noqa
else:
    from .local import *  # noqa

# medslot/routers/__init__.py
from . import health
from . import auth
from . import doctors
from . import doctor
from . import appointments
from . import admin
from . import dev

__all__ = ["health", "auth", "doctors", "doctor", "appointments", "admin", "dev"]

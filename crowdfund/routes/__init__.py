from .admin_routes import admin_bp
from .auth_routes import auth_bp
from .campaign_routes import campaigns
from .contact_routes import contact_bp
from .core_routes import core
from .dashboard_routes import dashboard
from .donation_routes import donations_bp
from .user_routes import user

__all__ = [
    "admin_bp",
    "auth_bp",
    "campaigns",
    "contact_bp",
    "core",
    "dashboard",
    "donations_bp",
    "user",
]

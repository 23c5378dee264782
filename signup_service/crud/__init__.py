# signup_service/crud/__init__.py

from .crud_registration import registration

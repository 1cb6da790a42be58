"""
WSGI config for the UAV license registry.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "uav_registry.settings")

application = get_wsgi_application()

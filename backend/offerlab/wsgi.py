"""
WSGI config for offerlab project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'offerlab.settings')

application = get_wsgi_application()

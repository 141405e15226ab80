"""
WSGI config for cuisinier_back project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'cuisinier_back.settings')

application = get_wsgi_application()

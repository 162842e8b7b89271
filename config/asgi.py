"""
ASGI config for the repairhub project.

It exposes the ASGI callable as a module-level variable named ``application``:
the Socket.IO server, mounted at ``REALTIME_SOCKETIO_PATH``, in front of the
Django application.

For more information on this file, see
https://docs.djangoproject.com/en/dev/howto/deployment/asgi/

"""

import os
import sys
from pathlib import Path

from django.core.asgi import get_asgi_application

# This allows easy placement of apps within the interior
# repairhub directory.
BASE_DIR = Path(__file__).resolve(strict=True).parent.parent
sys.path.append(str(BASE_DIR / "repairhub"))

# If DJANGO_SETTINGS_MODULE is unset, select a sensible default based on BUILD_ENV
# Default to local settings for the local dev image, production otherwise.
if "DJANGO_SETTINGS_MODULE" not in os.environ:
    build_env = os.environ.get("BUILD_ENV", "production").lower()
    default_settings = (
        "config.settings.local"
        if build_env == "local"
        else "config.settings.production"
    )
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", default_settings)

django_application = get_asgi_application()

from repairhub.realtime.server import get_server  # noqa: E402

# The realtime app built the server in ready(); binding it here starts the
# transport, and the ASGI lifespan shutdown tears it down.
application = get_server().asgi_app(django_application)

from django.conf import settings as django_settings

from .module import SETTINGS


def get_setting(name):
    """Look up a module setting, letting settings.TABLESIDE override defaults."""
    overrides = getattr(django_settings, 'TABLESIDE', None) or {}
    if name in overrides:
        return overrides[name]
    return SETTINGS[name]

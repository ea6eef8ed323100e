from django.apps import AppConfig

from .module import MODULE_ID, MODULE_NAME


class TablesideConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = MODULE_ID
    verbose_name = MODULE_NAME

    def ready(self):
        from . import realtime
        realtime.connect_model_signals()

from django.apps import AppConfig


class RealtimeConfig(AppConfig):
    name = "realtime"
    verbose_name = "Realtime order feed"

    def ready(self):
        from . import signals  # noqa: F401

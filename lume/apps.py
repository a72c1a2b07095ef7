from django.apps import AppConfig


class LumeConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "lume"
    verbose_name = "LuMe"

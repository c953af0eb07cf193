from django.apps import AppConfig


class IamConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "mc_core.iam"
    label = "iam"

    def ready(self) -> None:
        # registers the auth scheme with drf-spectacular
        from mc_core.iam import openapi  # noqa: F401

from django.apps import AppConfig


class PatientChatConfig(AppConfig):
    name = "patient_chat_api"
    verbose_name = "Patient Chat API"

    def ready(self):
        from django.conf import settings

        # ─── DI container ───────────────────────────────────────────
        from patient_sync_core.adapters.config.composition_root import (
            setup_di_container_from_settings,
        )

        setup_di_container_from_settings(settings)

from django.apps import AppConfig


class ExaminationSystemConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "examination_system"
    verbose_name = "Examination seating"

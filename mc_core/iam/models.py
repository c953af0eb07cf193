# mc_core/iam/models.py
import uuid

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models
from django.db.models.functions import Lower
from django.utils import timezone


class UserRole(models.TextChoices):
    PATIENT = "patient", "Patient"
    GP = "gp", "General Practitioner"
    SPECIALIST = "specialist", "Specialist"
    PHARMACY = "pharmacy", "Pharmacy"
    DIAGNOSTIC_CENTER = "diagnostic_center", "Diagnostic Center"
    ADMIN = "admin", "Admin"


# Roles a person may pick at signup. ADMIN is never self-assigned.
SIGNUP_ROLES = (UserRole.PATIENT,)

# Provider and partner roles are only activated by an approved application.
APPLICATION_ROLES = (
    UserRole.GP,
    UserRole.SPECIALIST,
    UserRole.PHARMACY,
    UserRole.DIAGNOSTIC_CENTER,
)


class UserManager(BaseUserManager):
    use_in_migrations = True

    def get_by_natural_key(self, email):
        return self.get(email__iexact=email)

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("email is required")
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", UserRole.ADMIN)
        extra_fields.setdefault("email_verified", True)
        return self._create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    MediConnect identity. Email is the login and is unique case-insensitively.

    role is blank for applicants whose provider/partner application is still pending;
    it is set by application approval or by an admin, never by the user.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    email = models.EmailField(max_length=254, unique=True)
    name = models.CharField(max_length=255)
    phone_number = models.CharField(max_length=32, blank=True, default="")

    role = models.CharField(max_length=32, choices=UserRole.choices, blank=True, default="", db_index=True)
    email_verified = models.BooleanField(default=False)
    email_verified_at = models.DateTimeField(null=True, blank=True)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    date_joined = models.DateTimeField(default=timezone.now, db_index=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    class Meta:
        db_table = "iam_user"
        constraints = [
            models.UniqueConstraint(Lower("email"), name="uq_user_email_ci"),
        ]
        indexes = [
            models.Index(fields=["role", "email_verified"]),
        ]

    def __str__(self) -> str:
        return self.email

    @property
    def is_admin(self) -> bool:
        return self.is_superuser or self.role == UserRole.ADMIN

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        return super().save(*args, **kwargs)

import uuid
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    ROLE_CHOICES = (
        ("GUEST", "Guest"),
        ("WAITER", "Waiter"),
        ("CHEF", "Chef"),
        ("ADMIN", "Admin"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default="GUEST")
    phone = models.CharField(max_length=20, blank=True, null=True)

    @property
    def is_floor_staff(self):
        return self.role in ("WAITER", "ADMIN")

    def __str__(self):
        return f"{self.username} - {self.role}"

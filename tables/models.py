import uuid
from django.core.validators import MinValueValidator
from django.db import models


class Table(models.Model):
    SHAPE_CHOICES = (
        ("RECT", "Rectangle"),
        ("ROUND", "Round"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Orders reference tables by label, so labels stay unique.
    label = models.CharField(max_length=50, unique=True)

    x = models.FloatField(default=0)
    y = models.FloatField(default=0)
    shape = models.CharField(max_length=10, choices=SHAPE_CHOICES, default="RECT")
    capacity = models.PositiveIntegerField(default=4, validators=[MinValueValidator(1)])

    class Meta:
        ordering = ["label"]

    def __str__(self):
        return self.label

import uuid
from django.db import models
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator

from . import state


class Order(models.Model):

    ORDER_TYPE = state.ORDER_TYPE_CHOICES

    STATUS_CHOICES = state.STATUS_CHOICES

    PAYMENT_METHODS = (
        ("CARD", "Card"),
        ("TICKET_CARD", "Ticket Card"),
        ("CASH", "Cash"),
        ("PAPER_TICKET", "Paper Ticket"),
    )

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )

    order_type = models.CharField(
        max_length=15,
        choices=ORDER_TYPE
    )

    # Joined against Table.label, not the table id.
    table_number = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        default=state.UNASSIGNED_TABLE,
        db_index=True
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=state.PENDING,
        db_index=True
    )

    payment_method = models.CharField(
        max_length=15,
        choices=PAYMENT_METHODS,
        null=True,
        blank=True
    )

    number_of_people = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)]
    )

    mains_started = models.BooleanField(default=False)

    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=0
    )

    # Bumped on every write to the order or its items.
    version = models.PositiveIntegerField(default=1)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_orders"
    )

    validated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="validated_orders"
    )

    # Browser session of an anonymous guest, used to find their order again.
    guest_session = models.CharField(max_length=64, null=True, blank=True, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def clean(self):

        if self.order_type == state.TAKEAWAY and self.table_number != state.TAKEAWAY_TABLE:
            raise ValidationError("Takeaway orders must use the takeaway table number")

        if self.order_type == state.DINE_IN and self.table_number == state.TAKEAWAY_TABLE:
            raise ValidationError("Dine-in orders cannot use the takeaway table number")

    def __str__(self):
        return f"{str(self.id)[-4:].upper()} - {self.status}"


class OrderItem(models.Model):

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items"
    )

    menu_item = models.ForeignKey(
        "products.MenuItem",
        on_delete=models.PROTECT,
        related_name="order_items"
    )

    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2
    )

    notes = models.TextField(blank=True, null=True)

    is_prepared = models.BooleanField(default=False)

    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position", "id"]

    def clean(self):

        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")

    def __str__(self):
        return f"{self.quantity} x {self.menu_item_id}"

from django.db.models.signals import post_save
from django.dispatch import receiver

from orders.models import Order, OrderItem

from .feed import feed


@receiver(post_save, sender=Order, dispatch_uid="realtime_order_saved")
def order_saved(sender, instance, **kwargs):
    feed.schedule(instance.pk)


@receiver(post_save, sender=OrderItem, dispatch_uid="realtime_order_item_saved")
def order_item_saved(sender, instance, **kwargs):
    feed.schedule(instance.order_id)

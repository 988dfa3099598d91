from rest_framework import serializers
from .models import Category, MenuItem


# ----------------------------
# CATEGORY
# ----------------------------

class CategorySerializer(serializers.ModelSerializer):

    class Meta:
        model = Category
        fields = ["id", "name", "slug", "display_order"]


# ----------------------------
# MENU ITEM
# ----------------------------

class MenuItemSerializer(serializers.ModelSerializer):

    category = serializers.SlugRelatedField(
        slug_field="slug",
        read_only=True
    )

    image_url = serializers.SerializerMethodField()

    class Meta:
        model = MenuItem
        fields = [
            "id",
            "code",
            "name_fr",
            "name_cn",
            "description_fr",
            "price",
            "category",
            "image_url",
            "is_popular",
            "is_available",
        ]

    def get_image_url(self, obj):
        if not obj.image:
            return None
        request = self.context.get("request")
        if request:
            return request.build_absolute_uri(obj.image.url)
        return obj.image.url

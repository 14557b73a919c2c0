from tortoise import fields
from tortoise.models import Model
from uuid import uuid4


class Favorite(Model):
    id = fields.UUIDField(primary_key=True, default=uuid4)
    user = fields.ForeignKeyField("models.User", related_name="favorites", on_delete=fields.CASCADE)
    auction = fields.ForeignKeyField("models.Auction", related_name="favorites", on_delete=fields.CASCADE)

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "favorites"
        unique_together = (("user", "auction"),)

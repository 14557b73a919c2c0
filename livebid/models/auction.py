from tortoise import fields
from tortoise.models import Model
from uuid import uuid4

from livebid.enums.auction_status import AuctionStatus
from livebid.enums.auction_category import AuctionCategory


class Auction(Model):
    id = fields.UUIDField(primary_key=True, default=uuid4)

    title = fields.CharField(max_length=255)
    description = fields.TextField(default="")
    category = fields.CharEnumField(AuctionCategory, max_length=32)
    image = fields.CharField(max_length=512, null=True)

    starting_price = fields.DecimalField(max_digits=12, decimal_places=2)
    # Written only by the bid commit path and the winner resolver
    current_price = fields.DecimalField(max_digits=12, decimal_places=2)

    start_time = fields.DatetimeField()
    end_time = fields.DatetimeField()
    status = fields.CharEnumField(AuctionStatus, max_length=16, default=AuctionStatus.upcoming)

    seller = fields.ForeignKeyField("models.User", related_name="auctions", on_delete=fields.CASCADE)
    winner = fields.ForeignKeyField("models.User", related_name="won_auctions", null=True, on_delete=fields.SET_NULL)

    views = fields.IntField(default=0)
    last_bid_at = fields.DatetimeField(null=True)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "auctions"
        indexes = (("status", "start_time"), ("status", "end_time"))

    def __str__(self):
        return f"Auction {self.id} - {self.title} ({self.status})"

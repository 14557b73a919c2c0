from tortoise import fields
from tortoise.models import Model
from uuid import uuid4


class Bid(Model):
    """Append-only: a bid is never updated or deleted once committed"""
    id = fields.UUIDField(primary_key=True, default=uuid4)

    auction = fields.ForeignKeyField("models.Auction", related_name="bids", on_delete=fields.CASCADE)
    bidder = fields.ForeignKeyField("models.User", related_name="bids", on_delete=fields.CASCADE)

    amount = fields.DecimalField(max_digits=12, decimal_places=2)

    # Commit time assigned by the ledger while holding the auction lock
    created_at = fields.DatetimeField()

    class Meta:
        table = "bids"
        ordering = ["created_at"]

    async def save(self, *args, **kwargs):
        if self.amount <= 0:
            raise ValueError("Amount must be greater than 0")
        await super().save(*args, **kwargs)

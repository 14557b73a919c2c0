from tortoise import fields
from tortoise.models import Model
from uuid import uuid4

from livebid.enums.activity_type import ActivityType


class ActivityLog(Model):
    id = fields.UUIDField(primary_key=True, default=uuid4)
    # Plain column rather than an FK: entries outlive deleted auctions and users
    user_id = fields.UUIDField(null=True)
    type = fields.CharEnumField(ActivityType, max_length=32)
    details = fields.JSONField(default=dict)

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "activity_log"
        ordering = ["-created_at"]

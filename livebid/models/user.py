from tortoise import fields
from tortoise.models import Model
from uuid import uuid4


class User(Model):
    """Identity record owned by the account service; the auction core only reads it"""
    id = fields.UUIDField(primary_key=True, default=uuid4)
    email = fields.CharField(max_length=255, unique=True)
    full_name = fields.CharField(max_length=255, default="")
    avatar = fields.CharField(max_length=512, null=True)

    is_active = fields.BooleanField(default=True)
    is_admin = fields.BooleanField(default=False)

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "users"

    def __str__(self):
        return f"User {self.id} - {self.email}"

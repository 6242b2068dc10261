from tortoise import fields
from tortoise.models import Model
import uuid

class User(Model):
    """Player account and lifetime point balance stored in SQLite."""

    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    username = fields.CharField(max_length=50, unique=True, index=True)
    # Cumulative points across solo and multiplayer play
    total_points = fields.IntField(default=0)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "users"

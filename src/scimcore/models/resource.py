from tortoise import fields
from tortoise.models import Model


class ResourceRecord(Model):
    """A provisioned resource stored as one JSON document per row."""
    id = fields.IntField(pk=True)
    resource_id = fields.CharField(max_length=64, unique=True)
    resource_type = fields.CharField(max_length=50)
    # Lower-cased userName / displayName, kept unique per resource type
    natural_key = fields.CharField(max_length=255)
    data = fields.JSONField()
    created = fields.DatetimeField(auto_now_add=True)
    modified = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "scim_resources"
        unique_together = [("resource_type", "natural_key")]
        ordering = ["id"]

    def __str__(self):
        return f"{self.resource_type}:{self.resource_id}"

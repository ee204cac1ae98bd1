import hashlib
import json
from typing import Optional
from pydantic import BaseModel


def generate_etag(resource: BaseModel) -> str:
    # meta carries the timestamps and the tag itself
    json_str = json.dumps(resource.model_dump(mode="json", exclude={"meta"}), sort_keys=True, default=str)
    return f'W/"{hashlib.md5(json_str.encode()).hexdigest()}"'


def validate_etag(request_etag: Optional[str], resource_etag: Optional[str]) -> bool:
    """If-Match check: proceed when either tag is absent, the tags match, or the request sent ``*``."""
    if not request_etag or not resource_etag:
        return True

    # Compare the opaque part only
    request_etag = request_etag.removeprefix("W/").strip('"')
    resource_etag = resource_etag.removeprefix("W/").strip('"')

    return request_etag == resource_etag or request_etag == "*"

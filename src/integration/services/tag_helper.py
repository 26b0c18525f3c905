"""Tags written onto provider resources.

The correlation tag is the only persisted link between a virtual instance ID
and the provider resource allocated for it. Its wire contract:

- key: ``alloc:virtual-instance-id``
- value: the virtual instance ID, 1-255 characters taken from letters,
  digits, whitespace and ``+ - = . _ : / @`` (accepted by both EC2 and RDS)

Every managed resource also carries ``alloc:template`` (template name) and
``alloc:managed`` (``"true"``). These three reserved tags count against the
provider limit of 50 tags per resource.
"""

import logging
import re

from integration.exceptions import TagValidationException
from integration.models import ResourceTemplate

log = logging.getLogger(__name__)

CORRELATION_TAG_KEY = "alloc:virtual-instance-id"
TEMPLATE_TAG_KEY = "alloc:template"
MANAGED_TAG_KEY = "alloc:managed"

RESERVED_TAG_KEYS = (CORRELATION_TAG_KEY, TEMPLATE_TAG_KEY, MANAGED_TAG_KEY)

MAX_TAGS_PER_RESOURCE = 50
MAX_TAGS_ALLOWED = MAX_TAGS_PER_RESOURCE - len(RESERVED_TAG_KEYS)
MAX_TAG_KEY_LENGTH = 128
MAX_TAG_VALUE_LENGTH = 255

_TAG_CHARACTERS = re.compile(r"^[\w\s+\-=.:/@]*$")


def validate_virtual_instance_id(virtual_instance_id: str) -> None:
    """Check that a virtual instance ID can be stored as a correlation tag value.

    Raises:
        TagValidationException: If the ID is empty, too long or has invalid characters.
    """
    if not virtual_instance_id:
        raise TagValidationException("Virtual instance ID cannot be empty")
    if len(virtual_instance_id) > MAX_TAG_VALUE_LENGTH:
        raise TagValidationException(
            f"Virtual instance ID '{virtual_instance_id[:32]}...' exceeds {MAX_TAG_VALUE_LENGTH} characters"
        )
    if not _TAG_CHARACTERS.match(virtual_instance_id):
        raise TagValidationException(
            f"Virtual instance ID '{virtual_instance_id}' contains characters not allowed in a tag value"
        )


def validate_tags(tags: dict[str, str] | None) -> None:
    """Validate user-defined tags before they are sent to the provider.

    A None tags map is allowed. Reserved keys and the provider's ``aws:`` prefix
    are rejected.

    Raises:
        TagValidationException: If the tags violate count, key or value constraints.
    """
    if not tags:
        return

    if len(tags) > MAX_TAGS_ALLOWED:
        raise TagValidationException(f"Number of tags exceeds the maximum of {MAX_TAGS_ALLOWED}")

    for key, value in tags.items():
        if not key or len(key) > MAX_TAG_KEY_LENGTH:
            raise TagValidationException(f"Tag key '{key}' must be 1-{MAX_TAG_KEY_LENGTH} characters")
        if key.lower().startswith("aws:"):
            raise TagValidationException(f"Tag key '{key}' uses the reserved 'aws:' prefix")
        if key in RESERVED_TAG_KEYS:
            raise TagValidationException(f"Tag key '{key}' is reserved")
        if value is None or len(value) > MAX_TAG_VALUE_LENGTH:
            raise TagValidationException(f"Tag value for '{key}' must be at most {MAX_TAG_VALUE_LENGTH} characters")
        if not _TAG_CHARACTERS.match(key) or not _TAG_CHARACTERS.match(value):
            raise TagValidationException(f"Tag '{key}' contains characters not allowed by the provider")


class AllocationTagHelper:
    """Builds the full tag set for a resource allocated for a virtual instance ID."""

    def __init__(self, default_tags: dict[str, str] | None = None):
        self.default_tags = dict(default_tags or {})

    def get_user_defined_tags(self, template: ResourceTemplate, virtual_instance_id: str) -> dict[str, str]:
        """Merge default tags with the template's tags (template wins).

        Tag values may reference ``{virtual_instance_id}`` and ``{template}``.
        """
        merged = {**self.default_tags, **template.tags}
        return {
            key: value.replace("{virtual_instance_id}", virtual_instance_id).replace("{template}", template.name)
            for key, value in merged.items()
        }

    def get_instance_tags(self, template: ResourceTemplate, virtual_instance_id: str) -> dict[str, str]:
        """Return user-defined tags plus the reserved correlation tags.

        Raises:
            TagValidationException: If the virtual ID or the user tags are invalid.
        """
        validate_virtual_instance_id(virtual_instance_id)
        user_defined_tags = self.get_user_defined_tags(template, virtual_instance_id)
        validate_tags(user_defined_tags)

        tags = dict(user_defined_tags)
        tags[CORRELATION_TAG_KEY] = virtual_instance_id
        tags[TEMPLATE_TAG_KEY] = template.name
        tags[MANAGED_TAG_KEY] = "true"
        return tags

    @staticmethod
    def get_virtual_instance_id(tags: dict[str, str] | None) -> str | None:
        """Return the virtual instance ID stored in the correlation tag, if any."""
        if not tags:
            return None
        return tags.get(CORRELATION_TAG_KEY)

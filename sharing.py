"""Social sharing: share-intent links and share usage logging."""

import logging
import re
import urllib.parse

from report_service import ActionState
from usage_service import log_usage_event, share_event_type

logger = logging.getLogger(__name__)

SHARE_URL_TEMPLATES = {
    'twitter': 'https://twitter.com/intent/tweet?text={text}&url={url}',
    'linkedin': 'https://www.linkedin.com/sharing/share-offsite/?url={url}',
    'facebook': 'https://www.facebook.com/sharer/sharer.php?u={url}',
    'reddit': 'https://reddit.com/submit?url={url}&title={text}',
}

_NETWORK_RE = re.compile(r'^[a-z0-9_-]{1,32}$')


def _encode(value: str) -> str:
    # Same safe set as JavaScript's encodeURIComponent
    return urllib.parse.quote(value or '', safe="-_.!~*'()")


def build_share_links(text: str, url: str) -> dict:
    """Return {network: share URL} with text and url encoded."""
    encoded_text = _encode(text)
    encoded_url = _encode(url)
    return {
        network: template.format(text=encoded_text, url=encoded_url)
        for network, template in SHARE_URL_TEMPLATES.items()
    }


def normalize_network(network) -> str | None:
    if not isinstance(network, str):
        return None
    name = network.strip().lower()
    return name if _NETWORK_RE.match(name) else None


def log_share(network, text: str | None = None,
              user_id: str | None = None) -> ActionState:
    """Record a share to ``network``. A failed write does not fail the share."""
    name = normalize_network(network)
    if not name:
        return ActionState.failure('A valid share network is required.', error='validation')

    if text:
        logger.info('Shared to %s: %s...', name, text[:30])

    if log_usage_event(share_event_type(name), user_id):
        return ActionState.success('Share logged successfully')
    return ActionState.success('Share received')

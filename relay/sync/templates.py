"""
Message Templates

Slack text the relay posts. Slack mrkdwn: *bold*, <url|label> links.
"""

ITEM_CREATED_TEMPLATE = """🟢 *New NAR Created in Monday*
• *Name:* {name}
• *Item ID:* {item_id}
• <{link}|Open in Monday>"""

UPDATE_TEMPLATE = """📝 *Update from Monday:*
{body}"""

ACK_TEMPLATE = '👀 Message received: "{preview}..."'

HEALTH_REPLY = "✅ NAR bot is alive and healthy!"

PREVIEW_LENGTH = 100


def item_link(account_url: str, board_id, item_id) -> str:
    """Deep link to an item on the board"""
    return f"{account_url.rstrip('/')}/boards/{board_id}/pulses/{item_id}"


def render_item_created(name: str, item_id, link: str) -> str:
    return ITEM_CREATED_TEMPLATE.format(name=name, item_id=item_id, link=link)


def render_update(body: str) -> str:
    return UPDATE_TEMPLATE.format(body=body)


def render_ack(text: str) -> str:
    return ACK_TEMPLATE.format(preview=(text or "")[:PREVIEW_LENGTH])

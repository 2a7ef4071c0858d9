MEET_BASE_URL = "https://g.co/meet/"
MEET_CODE_MAX_LENGTH = 59
MEET_ICON_URL = "https://assets.ubuntu.com/v1/fa583301-meet-bot-logo.png"
MEET_HELP = (
    "Create a new Meet and post the link to the current channel, "
    "format: `/meet @{username} [@{username} ...]`"
)


def meet_code(participants: str) -> str:
    # g.co/meet nicknames are capped at 59 characters
    return participants.replace("@", "").replace(" ", "-")[:MEET_CODE_MAX_LENGTH]


def generate_meet_link(participants: str) -> str:
    """
    Build a Google Meet nickname link from a list of mentions, e.g.
    "@alice @bob" gives https://g.co/meet/alice-bob

    Note: g.co/meet nicknames open (or create) the same meeting for
    everyone who follows the link, so no Google API call is needed.
    """
    return f"Your Meet is ready: {MEET_BASE_URL}{meet_code(participants)} {participants}"

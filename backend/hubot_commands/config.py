from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional
import os

from .errors import ConfigurationError

REQUIRED_ENV_VARS = (
    "HUBOT_SPREADSHEET_ID",
    "HUBOT_SPREADSHEET_CLIENT_EMAIL",
    "HUBOT_SPREADSHEET_PRIVATE_KEY",
    "MATTERMOST_TOKEN_CMD_MEET",
    "MATTERMOST_TOKEN_CMD_EXPLAIN",
)


@dataclass(frozen=True)
class Settings:
    spreadsheet_id: str
    client_email: str
    private_key: str
    meet_token: str
    explain_token: str
    outgoing_token: Optional[str] = None
    robot_name: str = "hubot"
    https_proxy: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Read settings from the process environment (or ``environ``).

        Raises ConfigurationError naming every required variable that is
        unset or blank.
        """
        env = os.environ if environ is None else environ
        missing = [name for name in REQUIRED_ENV_VARS if not (env.get(name) or "").strip()]
        if missing:
            raise ConfigurationError(missing)

        return cls(
            spreadsheet_id=env["HUBOT_SPREADSHEET_ID"].strip(),
            client_email=env["HUBOT_SPREADSHEET_CLIENT_EMAIL"].strip(),
            # Keys pasted into .env files usually carry escaped newlines
            private_key=env["HUBOT_SPREADSHEET_PRIVATE_KEY"].replace("\\n", "\n"),
            meet_token=env["MATTERMOST_TOKEN_CMD_MEET"],
            explain_token=env["MATTERMOST_TOKEN_CMD_EXPLAIN"],
            outgoing_token=env.get("MATTERMOST_TOKEN_OUTGOING") or None,
            robot_name=(env.get("HUBOT_NAME") or "hubot").strip(),
            https_proxy=env.get("HTTPS_PROXY") or env.get("https_proxy") or None,
        )

    def service_account_info(self) -> dict:
        return {
            "type": "service_account",
            "client_email": self.client_email,
            "private_key": self.private_key,
            "token_uri": "https://oauth2.googleapis.com/token",
        }

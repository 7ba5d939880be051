"""
Configuration Management for the NAR Relay

Loads configuration from an optional JSON file, a .env file and environment
variables, then validates it before the server accepts traffic.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

logger = logging.getLogger("relay.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".nar-relay"
CONFIG_PATH = CONFIG_DIR / "config.json"

DEFAULT_WEBHOOK_SECRET = "nar-monday-secret-123"
DEFAULT_ACCOUNT_URL = "https://new-age1.monday.com"
MONDAY_API_URL = "https://api.monday.com/v2"
MONDAY_API_VERSION = "2024-10"

# Public URL candidates, first set wins (Render injects RENDER_EXTERNAL_URL)
PUBLIC_URL_ENV_VARS = ("RENDER_EXTERNAL_URL", "PUBLIC_URL", "NGROK_URL")


class ConfigError(Exception):
    """Raised when required configuration is missing or malformed."""

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__("Invalid configuration: " + "; ".join(self.problems))


@dataclass
class SlackConfig:
    """Slack app configuration"""
    bot_token: str = ""
    signing_secret: str = ""
    channel_id: str = ""
    restrict_to_channel: bool = True


@dataclass
class MondayConfig:
    """monday.com board configuration"""
    api_token: str = ""
    board_id: Optional[int] = None
    webhook_secret: str = DEFAULT_WEBHOOK_SECRET
    account_url: str = DEFAULT_ACCOUNT_URL
    api_url: str = MONDAY_API_URL
    api_version: str = MONDAY_API_VERSION


@dataclass
class ServerConfig:
    """HTTP server configuration"""
    host: str = "0.0.0.0"
    port: int = 3000
    public_url: str = ""
    webhook_path: str = "/monday/webhook"


@dataclass
class RelayConfig:
    """Main relay configuration"""
    slack: SlackConfig = field(default_factory=SlackConfig)
    monday: MondayConfig = field(default_factory=MondayConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    _parse_errors: list = field(default_factory=list, repr=False)


def _parse_int(value, name: str, errors: list) -> Optional[int]:
    """Parse an integer setting, recording a problem instead of raising"""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        errors.append(f"{name} must be an integer (got {value!r})")
        return None


def _section(data: dict, name: str, errors: list) -> dict:
    """Return a config file section, recording a problem if it is not an object"""
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        errors.append(f"config file section {name!r} must be an object")
        return {}
    return section


def _parse_slack_config(data: dict, errors: list) -> SlackConfig:
    """Parse slack section from config dict"""
    slack_data = _section(data, "slack", errors)
    restrict = slack_data.get("restrict_to_channel")
    return SlackConfig(
        bot_token=slack_data.get("bot_token") or "",
        signing_secret=slack_data.get("signing_secret") or "",
        channel_id=slack_data.get("channel_id") or "",
        restrict_to_channel=True if restrict is None else bool(restrict),
    )


def _parse_monday_config(data: dict, errors: list) -> MondayConfig:
    """Parse monday section from config dict"""
    monday_data = _section(data, "monday", errors)
    return MondayConfig(
        api_token=monday_data.get("api_token") or "",
        board_id=_parse_int(monday_data.get("board_id"), "monday.board_id", errors),
        webhook_secret=monday_data.get("webhook_secret") or DEFAULT_WEBHOOK_SECRET,
        account_url=monday_data.get("account_url") or DEFAULT_ACCOUNT_URL,
        api_url=monday_data.get("api_url") or MONDAY_API_URL,
        api_version=monday_data.get("api_version") or MONDAY_API_VERSION,
    )


def _parse_server_config(data: dict, errors: list) -> ServerConfig:
    """Parse server section from config dict"""
    server_data = _section(data, "server", errors)
    port = _parse_int(server_data.get("port"), "server.port", errors)
    return ServerConfig(
        host=server_data.get("host") or "0.0.0.0",
        port=port if port is not None else 3000,
        public_url=server_data.get("public_url") or "",
        webhook_path=server_data.get("webhook_path") or "/monday/webhook",
    )


def _config_path() -> Path:
    override = os.getenv("RELAY_CONFIG_PATH")
    return Path(override) if override else CONFIG_PATH


def load_config() -> RelayConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (a .env file in the working directory is loaded
       first without overriding variables that are already set)
    2. Config file (~/.nar-relay/config.json or $RELAY_CONFIG_PATH)
    3. Default values

    Malformed integers are recorded rather than raised; call
    validate_config() to surface them.
    """
    load_dotenv()

    config = RelayConfig()
    errors: list = []

    path = _config_path()
    if path.exists():
        try:
            with open(path) as f:
                data = json.load(f)

            if isinstance(data, dict):
                config.slack = _parse_slack_config(data, errors)
                config.monday = _parse_monday_config(data, errors)
                config.server = _parse_server_config(data, errors)
            else:
                errors.append(f"config file {path} must contain a JSON object")
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load config file %s: %s", path, e)

    # Environment variable overrides
    if os.getenv("SLACK_BOT_TOKEN"):
        config.slack.bot_token = os.getenv("SLACK_BOT_TOKEN")
    if os.getenv("SLACK_SIGNING_SECRET"):
        config.slack.signing_secret = os.getenv("SLACK_SIGNING_SECRET")
    if os.getenv("NAR_CHANNEL_ID"):
        config.slack.channel_id = os.getenv("NAR_CHANNEL_ID")

    if os.getenv("MONDAY_API_TOKEN"):
        config.monday.api_token = os.getenv("MONDAY_API_TOKEN")
    if os.getenv("MONDAY_BOARD_ID"):
        config.monday.board_id = _parse_int(
            os.getenv("MONDAY_BOARD_ID"), "MONDAY_BOARD_ID", errors
        )
    if os.getenv("MONDAY_WEBHOOK_SECRET"):
        config.monday.webhook_secret = os.getenv("MONDAY_WEBHOOK_SECRET")
    if os.getenv("MONDAY_ACCOUNT_URL"):
        config.monday.account_url = os.getenv("MONDAY_ACCOUNT_URL")

    if os.getenv("PORT"):
        port = _parse_int(os.getenv("PORT"), "PORT", errors)
        if port is not None:
            config.server.port = port

    for env_var in PUBLIC_URL_ENV_VARS:
        if os.getenv(env_var):
            config.server.public_url = os.getenv(env_var)
            break

    config.server.public_url = config.server.public_url.rstrip("/")
    config.monday.account_url = config.monday.account_url.rstrip("/")
    config._parse_errors = errors

    return config


def validate_config(config: RelayConfig) -> RelayConfig:
    """
    Check that everything the relay needs to start is present.

    Raises:
        ConfigError: listing every missing or malformed value
    """
    problems = list(config._parse_errors)

    required = {
        "SLACK_BOT_TOKEN": config.slack.bot_token,
        "SLACK_SIGNING_SECRET": config.slack.signing_secret,
        "NAR_CHANNEL_ID": config.slack.channel_id,
        "MONDAY_API_TOKEN": config.monday.api_token,
        "MONDAY_BOARD_ID": config.monday.board_id,
    }
    missing = [key for key, value in required.items() if not value]
    if missing:
        problems.append("missing required settings: " + ", ".join(missing))

    if config.slack.bot_token and "xoxb-" not in config.slack.bot_token:
        problems.append("SLACK_BOT_TOKEN is not a bot token (expected xoxb-...)")

    if problems:
        raise ConfigError(problems)

    if config.monday.webhook_secret == DEFAULT_WEBHOOK_SECRET:
        logger.warning(
            "MONDAY_WEBHOOK_SECRET not set, using the built-in default secret"
        )

    return config

import json, logging, os
from pathlib import Path
from discord_7dtd.exceptions.config import ConfigError, ConfigPersistFailure

logger = logging.getLogger("AppConfig")

DEFAULT_CONFIG = {
    "password": None,
    "ip": "localhost",
    "port": 8081,
    "token": None,
    "channel": None,
    "prefix": "7d!",
    "allow-exec-command": False,
    "allow-multiple-instances": False,
    "disable-commands": False,
    "disable-chatmsgs": False,
    "disable-gmsgs": False,
    "disable-join-leave-gmsgs": False,
    "disable-misc-gmsgs": False,
    "show-private-chat": False,
    "disable-status-updates": False,
    "disable-version-check": False,
    "hide-prefix": False,
    "log-messages": False,
    "log-telnet": False,
    "debug-mode": False,
    "demo-mode": False,
    "skip-discord-auth": False,
    "log_level": "INFO",
    "heartbeat-interval": 3600,
    "pending-request-timeout": 0,
}

# Placeholder values shipped in example.json.
PLACEHOLDER_TOKEN = "your_token_here"
PLACEHOLDER_CHANNEL = "channelid"


class AppConfig:
    def __init__(self, config_path: str = None, overrides: dict = None):
        parent = os.path.dirname(Path(__file__).resolve().parent)
        self.project_root = os.path.dirname(parent)
        config_dir = os.path.join(self.project_root, "config")
        self.config_path = config_path or os.path.join(config_dir, "config.json")
        self.example_config_path = os.path.join(config_dir, "example.json")
        self.overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
        self.reload_config()

    @staticmethod
    def merge_dicts(dict1, dict2):
        result = dict1.copy()
        for key, value in dict2.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = AppConfig.merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    def reload_config(self):
        file_config = {}
        if not os.path.exists(self.config_path) and os.path.exists(self.example_config_path):
            with open(self.example_config_path, "r") as example_file:
                example_config = json.load(example_file)
            with open(self.config_path, "w") as config_file:
                json.dump(example_config, config_file, indent=4)
        if os.path.exists(self.config_path):
            with open(self.config_path, "r") as config_file:
                file_config = json.load(config_file)
        self.config = self.merge_dicts(DEFAULT_CONFIG, file_config)
        self.config = self.merge_dicts(self.config, self.overrides)

    def get(self, key, default=None):
        return self.config.get(key, default)

    def get_flag(self, key) -> bool:
        return bool(self.config.get(key, False))

    def get_log_level(self):
        level = self.config.get("log_level", "INFO")
        return getattr(logging, str(level).upper(), logging.INFO)

    def get_password(self):
        return self.config.get("password")

    def get_ip(self):
        return self.config.get("ip") or DEFAULT_CONFIG["ip"]

    def get_port(self) -> int:
        port = self.config.get("port")
        return int(port) if port else DEFAULT_CONFIG["port"]

    def get_token(self):
        return self.config.get("token")

    def get_channel_id(self):
        channel = self.config.get("channel")
        if channel is None or str(channel) == PLACEHOLDER_CHANNEL:
            return None
        return str(channel)

    def get_command_prefix(self) -> str:
        prefix = self.config.get("prefix")
        if not isinstance(prefix, str):
            prefix = DEFAULT_CONFIG["prefix"]
        return prefix.upper()

    def get_heartbeat_interval(self) -> float:
        return float(self.config.get("heartbeat-interval") or DEFAULT_CONFIG["heartbeat-interval"])

    def get_pending_request_timeout(self) -> float:
        return float(self.config.get("pending-request-timeout") or 0)

    def set_config_value(self, key, value):
        """Set a value in memory and write the whole document back to disk.

        The in-memory value is kept even when the write fails, so the caller
        can keep running with it until the next restart.
        """
        self.config[key] = value
        self.overrides.pop(key, None)
        try:
            with open(self.config_path, "w") as config_file:
                logger.info(f"Saving config to {self.config_path}")
                json.dump(self.config, config_file, indent=4)
        except OSError as e:
            raise ConfigPersistFailure(self.config_path, e) from e

    def validate(self):
        if not self.get_password():
            raise ConfigError("ERROR: No telnet password specified!")
        if self.get_flag("skip-discord-auth"):
            return
        token = self.get_token()
        if not token:
            raise ConfigError("ERROR: No Discord token specified!")
        if token == PLACEHOLDER_TOKEN:
            raise ConfigError(
                'It appears that you have not yet added a token. Please replace "your_token_here" with a valid token in the config file.'
            )
        if len(token) < 50:
            raise ConfigError(
                "It appears that you have entered a client secret or other invalid string. Please ensure that you have entered a bot token and try again."
            )

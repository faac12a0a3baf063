class ConfigError(Exception):
    """Raised at startup when a required setting is missing or obviously wrong."""


class ConfigPersistFailure(Exception):
    def __init__(self, path, error):
        self.path = path
        self.error = error
        super().__init__(f"Failed to write {path}: {error}")

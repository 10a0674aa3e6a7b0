class CorruptDataError(Exception):
    def __init__(self, key: str, reason: str = ""):
        self.key = key
        self.reason = reason
        super().__init__(f"Stored data for '{key}' is corrupt" + (f": {reason}" if reason else ""))

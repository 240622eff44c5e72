from errors import Unauthorized


class AdminGate:
    """Shared-password check in front of every admin mutation."""

    def __init__(self, secret):
        self._secret = secret or ""

    def authorize(self, supplied):
        if not self._secret or supplied is None:
            return False
        return supplied == self._secret

    def require(self, supplied, action="admin action"):
        if not self.authorize(supplied):
            raise Unauthorized(f"Incorrect password for {action}")

from .health import health_bp
from .slack import slack_bp

__all__ = ["health_bp", "slack_bp"]
